"""
Flourish API package.

A FastAPI service backing the Flourish mobile app: user bootstrap and
profiles, savings wins, challenges, premium billing via RevenueCat and
Gemini-powered helpers with a cache-aside layer over the document store.
"""
