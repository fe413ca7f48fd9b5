"""Net worth aggregation, snapshots and the manual asset ledger"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import List
from sqlalchemy.orm import Session
from financial_guru.domain.exceptions import NotFoundError
from financial_guru.domain.models import AccountType, AssetClass, AssetType
from financial_guru.infrastructure.database.models import ManualAsset, NetWorthSnapshot
from financial_guru.infrastructure.database.repositories import (
    AccountRepository,
    ManualAssetRepository,
    NetWorthSnapshotRepository,
)

logger = logging.getLogger(__name__)

HISTORY_LENGTH = 12


@dataclass
class NetWorthSummary:
    net_worth: float
    liquid_assets: float
    credit_card_debt: float
    manual_assets_total: float
    manual_liabilities: float
    monthly_change: float
    yearly_change: float
    assets: List[ManualAsset] = field(default_factory=list)


class NetWorthService:
    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountRepository(db)
        self.assets = ManualAssetRepository(db)
        self.snapshots = NetWorthSnapshotRepository(db)

    def current(self) -> NetWorthSummary:
        """
        Compute today's net worth from account balances and manual entries.

        monthly_change compares against the latest snapshot; yearly_change
        against the 12th latest, only once twelve snapshots exist.
        """
        liquid = 0.0
        card_debt = 0.0
        for account in self.accounts.list_active():
            if account.current_balance is None:
                continue
            if account.type in (AccountType.CHECKING.value, AccountType.SAVINGS.value):
                liquid += account.current_balance
            elif account.type == AccountType.CREDIT_CARD.value:
                card_debt += account.current_balance

        assets = self.assets.list_all()
        assets_total = sum(a.current_value for a in assets if a.asset_type == AssetType.ASSET.value)
        liabilities = sum(a.current_value for a in assets if a.asset_type == AssetType.LIABILITY.value)
        net_worth = round(liquid - card_debt + assets_total - liabilities, 2)

        history = self.snapshots.latest(HISTORY_LENGTH)
        monthly_change = 0.0
        yearly_change = 0.0
        if history:
            monthly_change = round(net_worth - history[0].net_worth, 2)
            if len(history) >= HISTORY_LENGTH:
                yearly_change = round(net_worth - history[-1].net_worth, 2)

        return NetWorthSummary(
            net_worth=net_worth,
            liquid_assets=round(liquid, 2),
            credit_card_debt=round(card_debt, 2),
            manual_assets_total=round(assets_total, 2),
            manual_liabilities=round(liabilities, 2),
            monthly_change=monthly_change,
            yearly_change=yearly_change,
            assets=assets,
        )

    def history(self) -> List[NetWorthSnapshot]:
        """Up to twelve latest snapshots, oldest first"""
        return list(reversed(self.snapshots.latest(HISTORY_LENGTH)))

    def capture_snapshot(self, today: date | None = None) -> NetWorthSnapshot:
        """Upsert today's snapshot"""
        today = today or date.today()
        summary = self.current()
        snapshot = self.snapshots.get_for_day(today)
        if snapshot is None:
            snapshot = NetWorthSnapshot(snapshot_date=today)
            self.db.add(snapshot)
        snapshot.liquid_assets = summary.liquid_assets
        snapshot.credit_card_debt = summary.credit_card_debt
        snapshot.manual_assets = summary.manual_assets_total
        snapshot.manual_liabilities = summary.manual_liabilities
        snapshot.net_worth = summary.net_worth
        self.db.flush()
        logger.info(f"Net worth snapshot for {today.isoformat()}: ${summary.net_worth:.2f}", extra={"step": "networth_snapshot"})
        return snapshot

    def list_assets(self) -> List[ManualAsset]:
        return self.assets.list_all()

    def get_asset(self, asset_id: uuid.UUID) -> ManualAsset:
        asset = self.assets.get(asset_id)
        if asset is None:
            raise NotFoundError("Asset", asset_id)
        return asset

    def add_asset(self, name: str, asset_type: str, asset_class: str | None, current_value: float, notes: str | None = None) -> ManualAsset:
        return self.assets.add(
            ManualAsset(
                name=name,
                asset_type=AssetType(asset_type.upper()).value,
                asset_class=AssetClass((asset_class or AssetClass.OTHER.value).upper()).value,
                current_value=current_value,
                notes=notes,
            )
        )

    def update_asset(self, asset_id: uuid.UUID, changes: dict) -> ManualAsset:
        asset = self.get_asset(asset_id)
        if changes.get("name") is not None:
            asset.name = changes["name"]
        if changes.get("current_value") is not None:
            asset.current_value = changes["current_value"]
        if changes.get("notes") is not None:
            asset.notes = changes["notes"]
        if changes.get("asset_type") is not None:
            asset.asset_type = AssetType(changes["asset_type"].upper()).value
        if changes.get("asset_class") is not None:
            asset.asset_class = AssetClass(changes["asset_class"].upper()).value
        self.db.flush()
        return asset

    def delete_asset(self, asset_id: uuid.UUID) -> None:
        self.assets.delete(self.get_asset(asset_id))
