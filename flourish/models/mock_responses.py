# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

"""Static responses served when Gemini is unavailable or returns unusable output."""

SMART_SWAP_MOCK = {
    "original": "branded cereal",
    "swaps": [
        {
            "name": "Aldi own-brand cereal",
            "estimatedSaving": "£1.20/week",
            "reason": "Same quality, half the price",
            "emoji": "🥣",
        },
        {
            "name": "Lidl Crownfield cereal",
            "estimatedSaving": "£1.00/week",
            "reason": "Great taste, budget friendly",
            "emoji": "⭐",
        },
        {
            "name": "Tesco own-brand cereal",
            "estimatedSaving": "£0.80/week",
            "reason": "Easy to find, good value",
            "emoji": "🛒",
        },
    ],
    "totalEstimatedSaving": "£13.00/month",
    "tip": "Try buying cereal in bulk when it's on offer, it keeps for months!",
}


def _meal(name: str, cost: str, emoji: str) -> dict:
    return {"name": name, "estimatedCost": cost, "emoji": emoji}


MEAL_PLAN_MOCK = {
    "days": [
        {
            "day": "Monday",
            "meals": {
                "breakfast": _meal("Porridge with banana", "£0.50", "🥣"),
                "lunch": _meal("Cheese toastie & apple", "£0.80", "🧀"),
                "dinner": _meal("One-pot chicken pasta", "£2.50", "🍝"),
                "snack": _meal("Carrot sticks & hummus", "£0.40", "🥕"),
            },
        },
        {
            "day": "Tuesday",
            "meals": {
                "breakfast": _meal("Toast with peanut butter", "£0.35", "🍞"),
                "lunch": _meal("Leftover pasta", "£0.00", "🍝"),
                "dinner": _meal("Veggie stir-fry with rice", "£2.00", "🍜"),
                "snack": _meal("Banana", "£0.15", "🍌"),
            },
        },
        {
            "day": "Wednesday",
            "meals": {
                "breakfast": _meal("Cereal with milk", "£0.40", "🥣"),
                "lunch": _meal("Beans on toast", "£0.55", "🫘"),
                "dinner": _meal("Fish fingers, chips & peas", "£2.20", "🐟"),
                "snack": _meal("Apple slices", "£0.20", "🍎"),
            },
        },
    ],
    "shoppingList": [
        {"item": "Porridge oats (1kg)", "estimatedCost": "£0.75"},
        {"item": "Bananas (bunch of 5)", "estimatedCost": "£0.65"},
        {"item": "Bread (800g)", "estimatedCost": "£0.55"},
        {"item": "Chicken breast (500g)", "estimatedCost": "£2.50"},
        {"item": "Pasta (500g)", "estimatedCost": "£0.50"},
        {"item": "Tinned tomatoes x2", "estimatedCost": "£0.70"},
        {"item": "Rice (1kg)", "estimatedCost": "£0.45"},
        {"item": "Mixed veg (frozen)", "estimatedCost": "£1.00"},
        {"item": "Fish fingers", "estimatedCost": "£1.50"},
        {"item": "Oven chips", "estimatedCost": "£1.00"},
    ],
    "totalEstimatedCost": "£18.50",
    "tips": [
        "Batch cook the pasta sauce, it freezes well for next week!",
        "Buy frozen veg instead of fresh to reduce waste.",
        "Check Aldi's Super 6 for cheap seasonal fruit & veg.",
    ],
}

GOAL_MOCK = {
    "monthlyTarget": "£166.67",
    "weeklyTarget": "£41.67",
    "dailyTarget": "£5.95",
    "strategies": [
        {
            "title": "The Smart Swap Savings",
            "description": "Switch to own-brand products for your weekly shop. Most families save £15-20/week.",
            "potentialSaving": "£70/month",
            "emoji": "🛒",
        },
        {
            "title": "Round-Up Rule",
            "description": "Round up every purchase to the nearest pound and save the difference.",
            "potentialSaving": "£30/month",
            "emoji": "🪙",
        },
        {
            "title": "Subscription Audit",
            "description": "Cancel unused subscriptions. The average family has 2-3 they don't use.",
            "potentialSaving": "£25/month",
            "emoji": "✂️",
        },
        {
            "title": "Meal Prep Sundays",
            "description": "Batch cook meals on Sunday to avoid expensive midweek takeaways.",
            "potentialSaving": "£50/month",
            "emoji": "🍳",
        },
    ],
    "milestones": [
        {"month": 1, "amount": "£167", "celebration": "First month done! You're building a habit 🌱"},
        {"month": 3, "amount": "£500", "celebration": "Halfway to £1000! Treat yourself to a nice coffee ☕"},
        {"month": 6, "amount": "£1,000", "celebration": "FOUR figures! You're doing amazing 🎉"},
        {"month": 12, "amount": "£2,000", "celebration": "You did it! Goal reached! 🏆🎊"},
    ],
    "encouragement": (
        "You're already ahead by planning this, most people never start. Every little "
        "bit adds up, and your kids will thank you for it. You've got this, mama! 💚"
    ),
}

CHAT_MOCK = {
    "reply": (
        "That's such a great question! 💚 Starting to save doesn't have to be complicated. "
        "Even putting away £5 a week adds up to over £250 a year, that's a lovely family day out! \n\n"
        'A simple way to start is the "spare change" method: round up everything you spend to the '
        "nearest pound, and pop the difference into a savings pot. Most banking apps can do this "
        "automatically.\n\nYou're already doing amazing by thinking about this. Want me to help you "
        "set a specific savings goal?"
    ),
    "suggestedActions": [
        "Set a savings goal",
        "Try a no-spend challenge",
        "See smart swap suggestions",
    ],
}
