"""Synthetic retailer prices and price history for the price tracker tool."""

import math
import random
from datetime import date, timedelta
from typing import Any, Dict, List, Optional
from urllib.parse import quote

PRODUCT_PRICE_RANGES: Dict[str, Dict[str, int]] = {
    "smartphone": {"min": 200, "max": 1500, "base": 800},
    "phone": {"min": 200, "max": 1500, "base": 800},
    "iphone": {"min": 400, "max": 1500, "base": 1000},
    "samsung": {"min": 300, "max": 1400, "base": 900},
    "laptop": {"min": 300, "max": 3000, "base": 1200},
    "computer": {"min": 300, "max": 3000, "base": 1200},
    "macbook": {"min": 1000, "max": 3500, "base": 2000},
    "headphones": {"min": 50, "max": 500, "base": 200},
    "airpods": {"min": 150, "max": 600, "base": 250},
    "earbuds": {"min": 50, "max": 400, "base": 150},
    "tablet": {"min": 200, "max": 1200, "base": 600},
    "ipad": {"min": 300, "max": 1500, "base": 800},
    "camera": {"min": 100, "max": 2000, "base": 500},
    "tv": {"min": 200, "max": 3000, "base": 800},
    "monitor": {"min": 100, "max": 1000, "base": 300},
    "gaming": {"min": 200, "max": 800, "base": 400},
    "console": {"min": 300, "max": 600, "base": 450},
    "playstation": {"min": 400, "max": 600, "base": 500},
    "xbox": {"min": 300, "max": 600, "base": 450},
    "nintendo": {"min": 200, "max": 400, "base": 300},
    "watch": {"min": 100, "max": 1000, "base": 300},
    "apple watch": {"min": 200, "max": 800, "base": 400},
    "fitness": {"min": 50, "max": 300, "base": 150},
    "speaker": {"min": 50, "max": 500, "base": 200},
    "homepod": {"min": 200, "max": 400, "base": 300},
    "echo": {"min": 50, "max": 200, "base": 100},
    "router": {"min": 50, "max": 400, "base": 150},
    "printer": {"min": 50, "max": 500, "base": 200},
    "keyboard": {"min": 20, "max": 300, "base": 100},
    "mouse": {"min": 10, "max": 150, "base": 50},
    "default": {"min": 50, "max": 500, "base": 200},
}

RETAILERS = [
    {"name": "Amazon", "url": "https://amazon.com"},
    {"name": "Best Buy", "url": "https://bestbuy.com"},
    {"name": "Walmart", "url": "https://walmart.com"},
    {"name": "Target", "url": "https://target.com"},
    {"name": "Apple Store", "url": "https://apple.com"},
    {"name": "Samsung", "url": "https://samsung.com"},
    {"name": "Microsoft Store", "url": "https://microsoft.com"},
    {"name": "Newegg", "url": "https://newegg.com"},
    {"name": "B&H Photo", "url": "https://bhphotovideo.com"},
    {"name": "Adorama", "url": "https://adorama.com"},
    {"name": "Micro Center", "url": "https://microcenter.com"},
    {"name": "Fry's Electronics", "url": "https://frys.com"},
    {"name": "Costco", "url": "https://costco.com"},
    {"name": "Sam's Club", "url": "https://samsclub.com"},
    {"name": "Office Depot", "url": "https://officedepot.com"},
    {"name": "Staples", "url": "https://staples.com"},
    {"name": "GameStop", "url": "https://gamestop.com"},
    {"name": "Etsy", "url": "https://etsy.com"},
    {"name": "eBay", "url": "https://ebay.com"},
    {"name": "Facebook Marketplace", "url": "https://facebook.com/marketplace"},
]

SPECIFICATIONS = [
    "High-resolution display",
    "Fast processor",
    "Long battery life",
    "Wireless connectivity",
    "Premium build quality",
    "Advanced security features",
    "Multiple color options",
    "Comprehensive warranty",
]

DESCRIPTION_TEMPLATES = [
    "High-quality {0} with advanced features and modern design.",
    "Premium {0} offering excellent performance and reliability.",
    "Feature-rich {0} perfect for everyday use and entertainment.",
    "Professional-grade {0} with cutting-edge technology.",
    "Versatile {0} suitable for both work and leisure activities.",
]

BRAND_KEYWORDS = [
    ("Apple", ("iphone", "ipad", "macbook", "airpods", "apple watch")),
    ("Samsung", ("samsung", "galaxy")),
    ("Sony", ("sony",)),
    ("LG", ("lg",)),
    ("Microsoft", ("microsoft", "surface", "xbox")),
    ("Google", ("google", "pixel")),
    ("OnePlus", ("oneplus",)),
    ("Nintendo", ("nintendo",)),
    ("Sony", ("playstation", "ps5", "ps4")),
]

CATEGORY_KEYWORDS = [
    ("Smartphone", ("phone", "iphone", "galaxy")),
    ("Laptop", ("laptop", "macbook", "computer")),
    ("Tablet", ("tablet", "ipad")),
    ("Headphones", ("headphones", "airpods", "earbuds")),
    ("Smartwatch", ("watch", "smartwatch")),
    ("TV", ("tv", "television")),
    ("Camera", ("camera",)),
    ("Gaming Console", ("console", "gaming", "playstation", "xbox")),
    ("Smart Speaker", ("speaker", "homepod", "echo")),
]


def _round_half_up(value: float, step: int) -> int:
    return int(math.floor(value / step + 0.5) * step)


def _round_price(price: float) -> int:
    return _round_half_up(price, 5) if price < 100 else _round_half_up(price, 10)


def price_range_for(product_name: str, category: str) -> Dict[str, int]:
    search_term = f"{product_name} {category}".lower()
    for key, price_range in PRODUCT_PRICE_RANGES.items():
        if key != "default" and key in search_term:
            return price_range
    return PRODUCT_PRICE_RANGES["default"]


def generate_realistic_price(product_name: str, category: str, rng: Optional[random.Random] = None) -> int:
    rng = rng or random.Random()
    price_range = price_range_for(product_name, category)
    variation = (rng.random() - 0.5) * 0.3
    price = price_range["base"] * (1 + variation)
    price = max(price_range["min"], min(price_range["max"], price))
    return _round_price(price)


def generate_price_sources(
    product_name: str, category: str, count: int = 8, rng: Optional[random.Random] = None
) -> List[Dict[str, Any]]:
    rng = rng or random.Random()
    base_price = generate_realistic_price(product_name, category, rng)
    retailers = list(RETAILERS)
    rng.shuffle(retailers)
    # retailer spread is clamped to the generic range, not the product's own
    default_range = PRODUCT_PRICE_RANGES["default"]
    low, high = default_range["min"] * 0.8, default_range["max"] * 1.2

    sources = []
    for retailer in retailers[: min(count, len(retailers))]:
        price = base_price * (1 + (rng.random() - 0.5) * 0.4)
        price = max(low, min(high, price))
        sources.append(
            {
                "name": retailer["name"],
                "price": _round_price(price),
                "url": retailer["url"],
                "inStock": rng.random() > 0.1,
                "rating": round(3.5 + rng.random() * 1.5, 1),
                "reviewCount": rng.randrange(5000) + 50,
            }
        )
    return sorted(sources, key=lambda source: source["price"])


def _match_keywords(name: str, table, default: str) -> str:
    name_lower = name.lower()
    for label, keywords in table:
        if any(keyword in name_lower for keyword in keywords):
            return label
    return default


def detect_brand(product_name: str) -> str:
    return _match_keywords(product_name, BRAND_KEYWORDS, "Unknown")


def detect_category(product_name: str) -> str:
    return _match_keywords(product_name, CATEGORY_KEYWORDS, "Electronics")


def get_product_info_and_prices(product_name: str, rng: Optional[random.Random] = None) -> Dict[str, Any]:
    rng = rng or random.Random()
    brand = detect_brand(product_name)
    category = detect_category(product_name)

    specs = list(SPECIFICATIONS)
    rng.shuffle(specs)
    prices = generate_price_sources(product_name, category, 12, rng)
    in_stock = [source["price"] for source in prices if source["inStock"]]

    return {
        "name": product_name,
        "brand": brand,
        "category": category,
        "description": rng.choice(DESCRIPTION_TEMPLATES).format(category.lower()),
        "specifications": specs[: 4 + rng.randrange(3)],
        "imageUrl": f"https://source.unsplash.com/400x400/?{quote(f'{brand} {product_name}')}",
        "prices": prices,
        "averagePrice": _round_half_up(sum(in_stock) / len(in_stock), 1) if in_stock else 0,
        "lowestPrice": min(in_stock) if in_stock else 0,
        "highestPrice": max(in_stock) if in_stock else 0,
    }


def generate_price_history(
    days: int, base_price: float, rng: Optional[random.Random] = None, today: Optional[date] = None
) -> List[Dict[str, Any]]:
    """Daily prices, oldest first, drifting further from ``base_price`` the older they are."""
    rng = rng or random.Random()
    today = today or date.today()
    history = []
    for days_ago in range(days - 1, -1, -1):
        price = base_price * (1 + (rng.random() - 0.5) * 0.1)
        trend = (rng.random() - 0.5) * 0.02
        price = price * (1 + trend * days_ago)
        history.append(
            {
                "date": (today - timedelta(days=days_ago)).isoformat(),
                "price": _round_half_up(price, 1),
            }
        )
    return history


def date_label(day: date, today: Optional[date] = None) -> str:
    today = today or date.today()
    diff = abs((today - day).days)
    if diff == 0:
        return "Today"
    if diff == 1:
        return "Yesterday"
    if diff <= 30:
        return f"{day.strftime('%b')} {day.day}"
    return day.strftime("%b %y")
