"""Rules that flag suspicious transactions in a freshly parsed statement"""

from typing import Iterable, List, Optional, Sequence, Tuple
from financial_guru.domain.models import AlertSeverity, TransactionType

DUPLICATE_WINDOW_DAYS = 7
SPIKE_MULTIPLIER = 2.5
SPIKE_MIN_HISTORY = 3
HIGH_SEVERITY_AMOUNT = 1000.0


def is_large(txn, threshold: float) -> bool:
    return txn.amount is not None and txn.amount > threshold and txn.type == TransactionType.DEBIT.value


def large_severity(amount: float) -> AlertSeverity:
    return AlertSeverity.HIGH if amount > HIGH_SEVERITY_AMOUNT else AlertSeverity.MEDIUM


def duplicate_pairs(transactions: Iterable, window: int = DUPLICATE_WINDOW_DAYS) -> List[Tuple[object, object, int]]:
    """
    (original, duplicate, days apart) for each pair of charges with the same
    merchant and amount no more than `window` days apart.
    """
    groups = {}
    for txn in transactions:
        if txn.merchant_name is None:
            continue
        groups.setdefault((txn.merchant_name, round(txn.amount, 2)), []).append(txn)

    pairs = []
    for group in groups.values():
        for i, first in enumerate(group):
            for second in group[i + 1:]:
                days = abs((first.transaction_date - second.transaction_date).days)
                if days <= window:
                    pairs.append((first, second, days))
    return pairs


def spike_baseline(history: Sequence[float]) -> Optional[float]:
    """Average past amount, or None without enough history to judge"""
    if len(history) < SPIKE_MIN_HISTORY:
        return None
    return round(sum(history) / len(history), 2)


def is_spike(amount: float, baseline: float) -> bool:
    return amount > baseline * SPIKE_MULTIPLIER
