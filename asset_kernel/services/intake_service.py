"""
IntakeService -- receiving purchased hardware into stock.

Responsibility:
    ``receive_stock`` is one atomic unit:
      1. find-or-create the Vendor by seller name (new ``VEN-`` id),
      2. find-or-create the quantity-model AssetType by name (+ model when
         given; new ``AST-`` id from the asset_id counter); per-unit rows
         are never restocked,
      3. append an immutable Purchase (``PUR-`` id unless supplied),
      4. restock the ledger by the purchased quantity.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - Purchases are append-only.
    - Every unit added to quantity_on_hand is backed by a Purchase row, so
      InventorySelector.reconcile() can compare purchases, deductions and
      the on-hand figure.
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from asset_kernel.domain.clock import Clock, SystemClock
from asset_kernel.domain.dtos import AssetTypeInfo, IntakeResult, PurchaseInfo, VendorInfo
from asset_kernel.exceptions import InvalidQuantityError
from asset_kernel.logging_config import get_logger
from asset_kernel.models.hardware import AssetType
from asset_kernel.models.purchase import Purchase, Vendor
from asset_kernel.services.base import BaseService, storage_guard
from asset_kernel.services.ledger_service import InventoryLedgerService
from asset_kernel.services.sequence_service import SequenceService

logger = get_logger("services.intake")

DEFAULT_BRAND = "Generic"
DEFAULT_MODEL = "Standard"


class IntakeService(BaseService[Purchase]):
    """Records stock arrivals."""

    def __init__(
        self,
        session: Session,
        sequence_service: SequenceService,
        ledger: InventoryLedgerService,
        clock: Clock | None = None,
    ):
        super().__init__(session)
        self._sequences = sequence_service
        self._ledger = ledger
        self._clock = clock or SystemClock()

    def receive_stock(
        self,
        asset_name: str,
        quantity: int,
        seller_name: str,
        *,
        brand: str | None = None,
        model: str | None = None,
        phone: str | None = None,
        gst_number: str | None = None,
        purchase_id: str | None = None,
        arrival_date: datetime | None = None,
    ) -> IntakeResult:
        """
        Receive ``quantity`` units of ``asset_name`` from ``seller_name``.

        Raises:
            InvalidQuantityError: quantity < 1.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise InvalidQuantityError(quantity)

        with self.session.begin_nested():
            vendor, vendor_created = self._find_or_create_vendor(
                seller_name, phone, gst_number
            )
            asset, asset_created = self._find_or_create_asset(asset_name, brand, model)

            purchase = Purchase(
                purchase_id=purchase_id or self._sequences.next_value(SequenceService.PURCHASE_ID),
                asset_id=asset.asset_id,
                asset_name=asset.name,
                quantity=quantity,
                seller_id=vendor.seller_id,
                arrival_date=arrival_date or self._clock.now(),
            )
            self.session.add(purchase)
            with storage_guard("intake.record_purchase"):
                self.session.flush()

            quantity_after = self._ledger.restock(asset.asset_id, quantity)
            asset = self._ledger.get_asset(asset.asset_id)

        logger.info(
            "stock_received",
            extra={
                "purchase_id": purchase.purchase_id,
                "asset_id": asset.asset_id,
                "quantity": quantity,
                "quantity_after": quantity_after,
                "seller_id": vendor.seller_id,
                "asset_created": asset_created,
                "vendor_created": vendor_created,
            },
        )
        return IntakeResult(
            asset=AssetTypeInfo.from_model(asset),
            purchase=PurchaseInfo.from_model(purchase),
            vendor=VendorInfo.from_model(vendor),
            asset_created=asset_created,
            vendor_created=vendor_created,
        )

    def register_unit(
        self,
        asset_name: str,
        model: str,
        *,
        brand: str | None = None,
        asset_id: str | None = None,
    ) -> AssetTypeInfo:
        """
        Add one catalog row without a purchase.

        Used for the per-unit model, where each physical unit is its own
        row (``is_unit=True``) sharing name+model with its siblings.  The
        row stays at zero quantity: per-unit availability is tracked by
        allocations.
        """
        now = self._clock.now()
        unit = AssetType(
            asset_id=asset_id or self._sequences.next_value(SequenceService.ASSET_ID),
            name=asset_name,
            brand=brand or DEFAULT_BRAND,
            model=model,
            quantity_on_hand=0,
            is_unit=True,
            created_at=now,
            updated_at=now,
        )
        self.session.add(unit)
        with storage_guard("intake.register_unit"):
            self.session.flush()
        logger.info(
            "unit_registered",
            extra={"asset_id": unit.asset_id, "asset_name": asset_name, "model": model},
        )
        return AssetTypeInfo.from_model(unit)

    def _find_or_create_vendor(
        self,
        seller_name: str,
        phone: str | None,
        gst_number: str | None,
    ) -> tuple[Vendor, bool]:
        with storage_guard("intake.find_vendor"):
            vendor = self.session.execute(
                select(Vendor).where(Vendor.seller_name == seller_name)
            ).scalar_one_or_none()
        if vendor is not None:
            return vendor, False

        now = self._clock.now()
        vendor = Vendor(
            seller_id=self._sequences.next_value(SequenceService.VENDOR_ID),
            seller_name=seller_name,
            phone=phone,
            gst_number=gst_number,
            created_at=now,
            updated_at=now,
        )
        self.session.add(vendor)
        with storage_guard("intake.create_vendor"):
            self.session.flush()
        logger.info(
            "vendor_created",
            extra={"seller_id": vendor.seller_id, "seller_name": seller_name},
        )
        return vendor, True

    def _find_or_create_asset(
        self,
        asset_name: str,
        brand: str | None,
        model: str | None,
    ) -> tuple[AssetType, bool]:
        stmt = select(AssetType).where(
            AssetType.name == asset_name,
            AssetType.is_unit.is_(False),
        )
        if model is not None:
            stmt = stmt.where(AssetType.model == model)
        with storage_guard("intake.find_asset"):
            asset = self.session.execute(
                stmt.order_by(AssetType.asset_id).limit(1)
            ).scalar_one_or_none()
        if asset is not None:
            return asset, False

        now = self._clock.now()
        asset = AssetType(
            asset_id=self._sequences.next_value(SequenceService.ASSET_ID),
            name=asset_name,
            brand=brand or DEFAULT_BRAND,
            model=model or DEFAULT_MODEL,
            quantity_on_hand=0,
            created_at=now,
            updated_at=now,
        )
        self.session.add(asset)
        with storage_guard("intake.create_asset"):
            self.session.flush()
        logger.info(
            "asset_type_created",
            extra={"asset_id": asset.asset_id, "asset_name": asset_name},
        )
        return asset, True
