"""
Static data and defaults for the MealDB recipe source.

The option lists mirror what TheMealDB exposes and are used by filter UIs
that do not want to hit the categories/areas endpoints on every render.
"""

DEFAULT_BASE_URL = "https://www.themealdb.com/api/json/v1/1"

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_BASE_SECONDS = 1.0
DEFAULT_CACHE_TTL_SECONDS = 300  # 5 minutes
DEFAULT_PAGE_SIZE = 15
DEFAULT_MAX_WORKERS = 16

# Upper bounds on how many summary records get hydrated to full detail
HYDRATION_LIMIT = 50
MULTI_TERM_HYDRATION_LIMIT = 100

# MealDB records carry 20 parallel ingredient/measure slots
INGREDIENT_SLOTS = 20

# Featured meals: the first four even ids starting at 52772
FEATURED_MEAL_IDS = ["52772", "52774", "52776", "52778"]

MEAL_CATEGORIES = [
    "Beef", "Chicken", "Dessert", "Lamb", "Miscellaneous",
    "Pasta", "Pork", "Seafood", "Side", "Starter",
    "Vegan", "Vegetarian", "Breakfast", "Goat",
]

MEAL_AREAS = [
    "American", "British", "Canadian", "Chinese", "Croatian",
    "Dutch", "Egyptian", "Filipino", "French", "Greek",
    "Indian", "Irish", "Italian", "Jamaican", "Japanese",
    "Kenyan", "Malaysian", "Mexican", "Moroccan", "Polish",
    "Portuguese", "Russian", "Spanish", "Thai", "Tunisian",
    "Turkish", "Ukrainian", "Vietnamese",
]

MEAL_INGREDIENTS = [
    "Chicken", "Beef", "Pork", "Salmon", "Tuna", "Shrimp",
    "Potatoes", "Tomatoes", "Onions", "Garlic", "Rice", "Pasta",
    "Eggs", "Cheese", "Milk", "Butter", "Olive Oil",
    "Mushrooms", "Carrots", "Broccoli", "Spinach", "Lettuce",
    "Flour", "Sugar", "Chocolate", "Vanilla", "Lemon",
]
