"""Keyword-based spending categorization"""

from typing import Optional, Tuple
from financial_guru.domain.models import TransactionType

# Checked in order; first category with a matching keyword wins
CATEGORY_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Groceries", (
        "wholefds", "whole foods", "kroger", "trader joe", "safeway", "publix", "aldi",
        "patel brothers", "patel brother", "harris teeter", "fresh market", "food lion",
        "wegman", "sprouts", "h-e-b", "market basket", "giant", "stop shop", "meijer",
        "albertsons", "vons", "ralph", "piggly", "grocery", "supermarket", "food mart",
        "fresh fare", "compare foods",
    )),
    ("Dining", (
        "restaurant", "kitchen", "grill", "pizza", "sushi", "ramen", "taco", "burger",
        "mcdonald", "chipotle", "panera", "subway", "chick-fil", "domino", "doordash",
        "grubhub", "ubereats", "door dash", "uber eats", "postmates", "seamless",
        "starbucks", "dunkin", "coffee", "cafe", "diner", "bistro", "eatery", "barbeque",
        "bbq", "thai", "chinese", "indian restaurant", "desi district", "pho", "wingstop",
        "five guys", "shake shack", "in-n-out", "popeyes", "kfc", "sonic drive",
        "dairy queen", "applebee", "chilis", "olive garden", "red lobster", "ihop", "denny",
        "tst*", "toast", "benihana", "buffalo wild", "outback", "cracker barrel",
        "cheesecake factory", "texas roadhouse", "hooters", "legal sea",
    )),
    ("Subscriptions", (
        "netflix", "spotify", "hulu", "disney+", "apple.com/bill", "google play",
        "google one", "google *google", "youtube premium", "youtube music", "paramount",
        "peacock", "hbo", "max.com", "showtime", "audible", "amazon prime", "apple music",
        "pandora", "tidal", "crunchyroll", "fubo", "microsoft 365", "dropbox", "icloud",
        "adobe", "1password", "lastpass",
    )),
    ("Shopping", (
        "amazon", "walmart", "target", "costco", "best buy", "ebay", "etsy", "apple store",
        "apple retail", "ikea", "home depot", "lowe", "tj maxx", "marshalls", "ross",
        "nordstrom", "macy", "gap", "old navy", "h&m", "zara", "forever 21", "bath body",
        "victoria secret", "sephora", "ulta", "chewy", "petco", "pet smart", "staples",
        "office depot", "dollar tree", "dollar general", "five below", "nautica",
        "gap factory", "banana republic", "j.crew", "ann taylor", "dsw", "rack room",
        "shoe carnival", "famous footwear", "foot locker", "burlington coat",
        "tuesday morning",
    )),
    ("Travel", (
        "airline", "airways", "united air", "delta air", "american air", "southwest",
        "jetblue", "alaska air", "spirit air", "frontier air", "hotel", "hilton",
        "marriott", "hyatt", "westin", "sheraton", "ihg", "hampton inn", "holiday inn",
        "airbnb", "vrbo", "expedia", "priceline", "booking.com", "hotels.com", "kayak",
        "travelocity", "hertz", "enterprise rent", "avis", "national car", "budget car",
        "amtrak", "greyhound",
    )),
    ("Transportation", (
        "uber", "lyft", "taxi", "transit", "metro", "mta", "bart", "parking", "parkmobile",
        "spothero", "divvy", "citi bike", "lime", "bird scooter",
    )),
    ("Gas", (
        "bp oil", "bp #", "shell oil", "exxon", "mobil", "chevron", "sunoco", "marathon",
        "citgo", "getty", "speedway", "wawa", "sheetz", "kwik trip", "casey", "circle k",
        "racetrac", "gas station", "fuel", "quiktrip", "7-eleven", "pilot flying",
    )),
    ("Healthcare", (
        "pharmacy", "cvs", "walgreen", "rite aid", "hospital", "medical", "doctor", "dental",
        "dentist", "vision", "optometric", "health", "urgent care", "clinic", "laboratory",
        "quest diagnostics", "labcorp", "kaiser", "blue cross", "aetna", "cigna", "humana",
        "insurance",
    )),
    ("Utilities", (
        "electric", "gas utility", "water utility", "sewage", "waste", "comcast", "xfinity",
        "spectrum", "cox comm", "at&t", "att.com", "verizon", "t-mobile", "sprint",
        "dish network", "directv", "internet service", "phone bill",
    )),
    ("Entertainment", (
        "amc theatre", "regal cinema", "cinemark", "movie", "concert", "ticketmaster",
        "eventbrite", "live nation", "stub hub", "sports ticket", "golf", "bowling",
        "escape room", "dave buster", "arcade", "museum", "zoo", "aquarium", "sea life",
        "theme park", "six flags", "disney world", "legoland", "universal studios",
        "seaworld",
    )),
    ("Health & Fitness", (
        "planet fitness", "la fitness", "equinox", "gold gym", "ymca", "anytime fitness",
        "crossfit", "peloton", "beachbody", "gym", "fitness", "yoga", "pilates", "sport",
        "athletic",
    )),
    ("Education", (
        "tuition", "university", "college", "school", "coursera", "udemy",
        "linkedin learning", "skillshare", "pluralsight", "books", "textbook", "education",
        "tutoring", "chegg",
    )),
)

FEE_CATEGORY = "Fees"


def categorize(merchant_name: Optional[str], txn_type: TransactionType) -> Optional[str]:
    """
    Map a merchant to a spending category.

    FEE and INTEREST rows are always "Fees"; credits stay uncategorized.
    Returns None when no keyword matches.
    """
    if merchant_name is None:
        return None
    if txn_type in (TransactionType.FEE, TransactionType.INTEREST):
        return FEE_CATEGORY
    if txn_type == TransactionType.CREDIT:
        return None

    lower = merchant_name.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return category
    return None

