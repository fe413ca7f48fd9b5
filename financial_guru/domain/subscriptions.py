"""Recurring charge recognition - known services and cadence detection"""

import re
from datetime import date, timedelta
from typing import List, Optional, Sequence, Tuple
from financial_guru.domain.models import SubscriptionFrequency
from financial_guru.utils.date_utils import add_months, add_years

AMOUNT_TOLERANCE = 0.10
PATTERN_CATEGORY = "Subscriptions"

# (keyword, display name, category); the first keyword found in merchant + description wins
KNOWN_SUBSCRIPTIONS = (
    ("netflix", "Netflix", "Entertainment"),
    ("spotify", "Spotify", "Entertainment"),
    ("hulu", "Hulu", "Entertainment"),
    ("disney+", "Disney+", "Entertainment"),
    ("disneyplus", "Disney+", "Entertainment"),
    ("hbomax", "HBO Max", "Entertainment"),
    ("max.com", "HBO Max", "Entertainment"),
    ("paramount", "Paramount+", "Entertainment"),
    ("peacock", "Peacock", "Entertainment"),
    ("crunchyroll", "Crunchyroll", "Entertainment"),
    ("fubo", "FuboTV", "Entertainment"),
    ("apple.com/bill", "Apple Services", "Subscriptions"),
    ("apple music", "Apple Music", "Entertainment"),
    ("youtube premium", "YouTube Premium", "Entertainment"),
    ("youtube music", "YouTube Music", "Entertainment"),
    ("amazon prime", "Amazon Prime", "Shopping"),
    ("prime video", "Prime Video", "Entertainment"),
    ("amazon music", "Amazon Music", "Entertainment"),
    ("audible", "Audible", "Entertainment"),
    ("kindle unlimited", "Kindle Unlimited", "Entertainment"),
    ("openai", "ChatGPT Plus", "Technology"),
    ("chatgpt", "ChatGPT Plus", "Technology"),
    ("google one", "Google One", "Technology"),
    ("google *google", "Google Services", "Technology"),
    ("microsoft 365", "Microsoft 365", "Technology"),
    ("microsoft*", "Microsoft", "Technology"),
    ("adobe", "Adobe Creative Cloud", "Technology"),
    ("dropbox", "Dropbox", "Technology"),
    ("icloud", "iCloud", "Technology"),
    ("github", "GitHub", "Technology"),
    ("zoom", "Zoom", "Technology"),
    ("slack", "Slack", "Technology"),
    ("1password", "1Password", "Technology"),
    ("lastpass", "LastPass", "Technology"),
    ("nordvpn", "NordVPN", "Technology"),
    ("expressvpn", "ExpressVPN", "Technology"),
    ("nytimes", "NY Times", "News"),
    ("wsj.com", "Wall Street Journal", "News"),
    ("wapo", "Washington Post", "News"),
    ("duolingo", "Duolingo", "Education"),
    ("coursera", "Coursera", "Education"),
    ("udemy", "Udemy", "Education"),
    ("linkedin learning", "LinkedIn Learning", "Education"),
    ("skillshare", "Skillshare", "Education"),
    ("masterclass", "MasterClass", "Education"),
    ("planet fitness", "Planet Fitness", "Health & Fitness"),
    ("equinox", "Equinox", "Health & Fitness"),
    ("peloton", "Peloton", "Health & Fitness"),
    ("headspace", "Headspace", "Health & Fitness"),
    ("calm", "Calm", "Health & Fitness"),
    ("noom", "Noom", "Health & Fitness"),
    ("myfitnesspal", "MyFitnessPal", "Health & Fitness"),
    ("xfinity", "Xfinity", "Utilities"),
    ("comcast", "Comcast", "Utilities"),
    ("spectrum", "Spectrum", "Utilities"),
    ("verizon", "Verizon", "Utilities"),
    ("t-mobile", "T-Mobile", "Utilities"),
    ("at&t", "AT&T", "Utilities"),
    ("att.com", "AT&T", "Utilities"),
    ("directv", "DirecTV", "Utilities"),
    ("dish network", "Dish Network", "Utilities"),
)

# (min days, max days, frequency) for the average gap between charges
CADENCE_WINDOWS = (
    (25, 35, SubscriptionFrequency.MONTHLY),
    (85, 100, SubscriptionFrequency.QUARTERLY),
    (350, 380, SubscriptionFrequency.ANNUAL),
    (5, 10, SubscriptionFrequency.WEEKLY),
)

CHARGES_PER_YEAR = {
    SubscriptionFrequency.WEEKLY: 52,
    SubscriptionFrequency.MONTHLY: 12,
    SubscriptionFrequency.QUARTERLY: 4,
    SubscriptionFrequency.ANNUAL: 1,
}

# Monthly equivalents used on the dashboard
MONTHLY_FACTOR = {
    SubscriptionFrequency.WEEKLY: 4.33,
    SubscriptionFrequency.MONTHLY: 1.0,
    SubscriptionFrequency.QUARTERLY: 1 / 3,
    SubscriptionFrequency.ANNUAL: 1 / 12,
}


def match_known_service(merchant: Optional[str], description: Optional[str]) -> Optional[Tuple[str, str]]:
    """(display name, category) of the known service a charge belongs to"""
    haystack = f"{merchant or ''} {description or ''}".lower()
    for keyword, display_name, category in KNOWN_SUBSCRIPTIONS:
        if keyword in haystack:
            return display_name, category
    return None


def rough_normalize(merchant: Optional[str]) -> str:
    """
    Grouping key for a merchant name.

    Example:
        >>> rough_normalize("SQ *Blue Bottle #12")
        'sq'
    """
    if merchant is None:
        return ""
    key = re.sub(r"\*.*$", "", merchant.lower())
    key = re.sub(r"[^a-z0-9 ]", "", key)
    return re.sub(r"\s+", " ", key).strip()


def average_amount(amounts: Sequence[float]) -> float:
    return round(sum(amounts) / len(amounts), 2)


def is_consistent_amount(amounts: Sequence[float]) -> bool:
    """Every amount within 10% of the mean"""
    avg = average_amount(amounts)
    if avg == 0:
        return False
    tolerance = avg * AMOUNT_TOLERANCE
    return all(abs(amount - avg) <= tolerance for amount in amounts)


def detect_frequency(dates: Sequence[date]) -> Optional[SubscriptionFrequency]:
    """Cadence from the average gap between the first and last charge"""
    if len(dates) < 2:
        return None
    ordered = sorted(dates)
    avg_gap = (ordered[-1] - ordered[0]).days / (len(ordered) - 1)
    for low, high, frequency in CADENCE_WINDOWS:
        if low <= avg_gap <= high:
            return frequency
    return None


def annual_cost(amount: float, frequency: SubscriptionFrequency) -> float:
    return round(amount * CHARGES_PER_YEAR[frequency], 2)


def monthly_cost(amount: Optional[float], frequency: Optional[str]) -> float:
    if amount is None:
        return 0.0
    try:
        factor = MONTHLY_FACTOR[SubscriptionFrequency(frequency)]
    except ValueError:
        factor = 1.0
    return amount * factor


def next_expected_date(last_charged: date, frequency: SubscriptionFrequency) -> date:
    if frequency == SubscriptionFrequency.WEEKLY:
        return last_charged + timedelta(weeks=1)
    if frequency == SubscriptionFrequency.QUARTERLY:
        return add_months(last_charged, 3)
    if frequency == SubscriptionFrequency.ANNUAL:
        return add_years(last_charged, 1)
    return add_months(last_charged, 1)


def group_duplicates(names_in_order: List[Tuple[str, object]]) -> List[Tuple[object, List[object]]]:
    """
    Pair each primary with the later subscriptions sharing its normalized name.

    names_in_order holds (normalized name, subscription); the first of each
    name is the primary.
    """
    groups = {}
    for name, subscription in names_in_order:
        groups.setdefault(name, []).append(subscription)
    return [(group[0], group[1:]) for group in groups.values() if len(group) > 1]
