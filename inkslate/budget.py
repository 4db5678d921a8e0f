"""
Budget feature: categories, budget items and monthly totals.

Budget items share the trash lifecycle with notes; every total below is
computed over items that are not in the trash.
"""

import logging
import math
import re
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional, Tuple

from dateutil.relativedelta import relativedelta
from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base
from .soft_delete import (
    RecordQuery,
    RecordStore,
    SoftDeleteMixin,
    SoftDeleteService,
    utcnow,
)

logger = logging.getLogger(__name__)

HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")

# Amounts up to 10% over budget are still "close to the limit"
CLOSE_TO_LIMIT_FACTOR = 1.1

DEFAULT_CATEGORIES: List[Tuple[str, str, str]] = [
    ("🏠 Housing & Utilities", "house.fill", "#2196F3"),
    ("🚗 Transportation", "car.fill", "#FF9800"),
    ("🛍️ Daily Living & Household", "cart.fill", "#4CAF50"),
    ("🍽️ Food & Leisure", "fork.knife", "#E91E63"),
    ("💵 Financial Obligations", "banknote.fill", "#9C27B0"),
    ("🧠 Education & Personal Growth", "graduationcap.fill", "#3F51B5"),
    ("🩺 Health & Wellness", "cross.fill", "#F44336"),
    ("🎁 Gifts & Giving", "gift.fill", "#FF5722"),
    ("📝 Miscellaneous", "ellipsis.circle.fill", "#607D8B"),
]


class BalanceStatus(str, Enum):
    """How an item's spending compares to its budget."""

    UNDER_BUDGET = "under_budget"
    CLOSE_TO_LIMIT = "close_to_limit"
    OVER_BUDGET = "over_budget"


class RecurringFrequency(str, Enum):
    """Recurrence options for budget items."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


def month_window(period: datetime) -> Tuple[datetime, datetime]:
    """Start (inclusive) and end (exclusive) of the calendar month of ``period``."""
    start = period.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return start, start + relativedelta(months=1)


class BudgetCategory(Base):  # type: ignore[valid-type,misc]
    """A spending category such as housing or transportation."""

    __tablename__ = "budget_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    icon: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False)
    created_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __init__(self, name: str, **kwargs: Any):
        kwargs.setdefault("icon", "dollarsign.circle")
        kwargs.setdefault("color", "#8B4513")
        kwargs.setdefault("created_date", utcnow())
        kwargs.setdefault("is_default", False)
        kwargs.setdefault("sort_order", 0)
        super().__init__(name=name, **kwargs)


class BudgetSubcategory(Base):  # type: ignore[valid-type,misc]
    """A finer grouping of budget items inside a category."""

    __tablename__ = "budget_subcategories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    icon: Mapped[str] = mapped_column(String(100), nullable=False)
    created_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    category_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("budget_categories.id", ondelete="SET NULL"), nullable=True
    )

    def __init__(self, name: str, **kwargs: Any):
        kwargs.setdefault("icon", "circle.fill")
        kwargs.setdefault("created_date", utcnow())
        kwargs.setdefault("sort_order", 0)
        super().__init__(name=name, **kwargs)


class BudgetItem(Base, SoftDeleteMixin):  # type: ignore[valid-type,misc]
    """An expense, income or planned budget entry."""

    __tablename__ = "budget_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    budget_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    created_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    modified_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_income: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    recurring_frequency: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RecurringFrequency.MONTHLY.value
    )
    category_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("budget_categories.id", ondelete="SET NULL"), nullable=True
    )
    subcategory_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("budget_subcategories.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __init__(self, name: str, amount: float = 0.0, **kwargs: Any):
        now = utcnow()
        kwargs.setdefault("budget_amount", 0.0)
        kwargs.setdefault("date", now)
        kwargs.setdefault("created_date", now)
        kwargs.setdefault("modified_date", now)
        kwargs.setdefault("notes", "")
        kwargs.setdefault("is_income", False)
        kwargs.setdefault("is_recurring", False)
        kwargs.setdefault("recurring_frequency", RecurringFrequency.MONTHLY.value)
        kwargs.setdefault("is_deleted", False)
        super().__init__(name=name, amount=amount, **kwargs)

    @property
    def balance(self) -> float:
        """Budget left over (negative when overspent)."""
        return self.budget_amount - self.amount

    @property
    def balance_percentage(self) -> float:
        """Share of the budget used, in percent; 0 without a positive budget."""
        if self.budget_amount <= 0:
            return 0.0
        percentage = self.amount / self.budget_amount * 100
        return percentage if math.isfinite(percentage) else 0.0

    @property
    def balance_status(self) -> BalanceStatus:
        if self.amount <= self.budget_amount:
            return BalanceStatus.UNDER_BUDGET
        if self.amount <= self.budget_amount * CLOSE_TO_LIMIT_FACTOR:
            return BalanceStatus.CLOSE_TO_LIMIT
        return BalanceStatus.OVER_BUDGET


class BudgetManager:
    """
    Creates budget records and computes monthly totals per category.

    Deletion, restoration and purging of items are delegated to the soft
    delete service for budget items.
    """

    def __init__(
        self,
        store: RecordStore,
        category_store: RecordStore,
        subcategory_store: RecordStore,
        trash: SoftDeleteService,
    ):
        """
        Initialize the budget manager.

        Args:
            store: Record store holding budget items
            category_store: Record store holding categories
            subcategory_store: Record store holding subcategories
            trash: Soft delete service for budget items
        """
        self.store = store
        self.category_store = category_store
        self.subcategory_store = subcategory_store
        self.trash = trash

    async def create_item(
        self,
        name: str,
        amount: float,
        budget_amount: float = 0.0,
        date: Optional[datetime] = None,
        notes: str = "",
        is_income: bool = False,
        is_recurring: bool = False,
        recurring_frequency: str = RecurringFrequency.MONTHLY.value,
        category_id: Optional[int] = None,
        subcategory_id: Optional[int] = None,
    ) -> BudgetItem:
        """
        Create and persist a new budget item.

        Raises:
            ValueError: If the name is blank or the frequency is unknown
        """
        if not name or not name.strip():
            raise ValueError("Budget item name is required")

        item = BudgetItem(
            name=name.strip(),
            amount=amount,
            budget_amount=budget_amount,
            date=date or utcnow(),
            notes=notes,
            is_income=is_income,
            is_recurring=is_recurring,
            recurring_frequency=RecurringFrequency(recurring_frequency).value,
            category_id=category_id,
            subcategory_id=subcategory_id,
        )
        return await self.store.save(item)

    async def save_item(self, item: BudgetItem) -> BudgetItem:
        """Persist edits to an item and bump its modification time."""
        item.modified_date = utcnow()
        return await self.store.save(item)

    async def delete_item(self, item: BudgetItem) -> BudgetItem:
        """Move a budget item to the trash."""
        return await self.trash.soft_delete(item)

    async def restore_item(self, item: BudgetItem) -> Optional[BudgetItem]:
        """Take a budget item out of the trash."""
        return await self.trash.restore(item)

    async def permanently_delete(self, item: BudgetItem) -> None:
        """Purge a trashed budget item."""
        await self.trash.purge(item)

    async def create_category(
        self,
        name: str,
        icon: str = "dollarsign.circle",
        color: str = "#8B4513",
        is_default: bool = False,
        sort_order: Optional[int] = None,
    ) -> BudgetCategory:
        """
        Create and persist a category, appended after existing ones by default.

        Raises:
            ValueError: If the name is blank or the color is not ``#RRGGBB``
        """
        if not name or not name.strip():
            raise ValueError("Category name is required")
        if not HEX_COLOR.match(color):
            raise ValueError(f"Color must be a hex value like #8B4513, got {color!r}")

        if sort_order is None:
            sort_order = len(await self.category_store.fetch())

        category = BudgetCategory(
            name=name.strip(),
            icon=icon,
            color=color,
            is_default=is_default,
            sort_order=sort_order,
        )
        return await self.category_store.save(category)

    async def list_categories(self) -> List[BudgetCategory]:
        """All categories in display order."""
        categories = await self.category_store.fetch()
        return sorted(categories, key=lambda c: (c.sort_order, c.name))

    async def create_subcategory(
        self,
        name: str,
        category: Optional[BudgetCategory] = None,
        icon: str = "circle.fill",
    ) -> BudgetSubcategory:
        """
        Create and persist a subcategory, appended after its siblings.

        Raises:
            ValueError: If the name is blank
        """
        if not name or not name.strip():
            raise ValueError("Subcategory name is required")

        category_id = category.id if category is not None else None
        siblings = await self.subcategory_store.fetch(
            RecordQuery(filters={"category_id": category_id})
        )
        subcategory = BudgetSubcategory(
            name=name.strip(),
            icon=icon,
            sort_order=len(siblings),
            category_id=category_id,
        )
        return await self.subcategory_store.save(subcategory)

    async def list_subcategories(
        self, category: BudgetCategory
    ) -> List[BudgetSubcategory]:
        """Subcategories of a category in display order."""
        subcategories = await self.subcategory_store.fetch(
            RecordQuery(filters={"category_id": category.id})
        )
        return sorted(subcategories, key=lambda s: (s.sort_order, s.name))

    async def initialize_default_categories(self) -> List[BudgetCategory]:
        """
        Create the default categories when none exist yet.

        Returns:
            The categories created, empty if categories already existed
        """
        if await self.category_store.fetch():
            return []

        created = []
        for index, (name, icon, color) in enumerate(DEFAULT_CATEGORIES):
            created.append(
                await self.create_category(
                    name, icon=icon, color=color, is_default=True, sort_order=index
                )
            )

        logger.info(f"Initialized {len(created)} default budget categories")
        return created

    async def _items_in_month(
        self, category: BudgetCategory, period: datetime
    ) -> List[BudgetItem]:
        start, end = month_window(period)
        items = await self.trash.list_active({"category_id": category.id})
        return [i for i in items if start <= i.date < end]

    async def total_budget(
        self, category: BudgetCategory, period: Optional[datetime] = None
    ) -> float:
        """Sum of budgeted amounts in the month containing ``period``."""
        items = await self._items_in_month(category, period or utcnow())
        return sum(i.budget_amount for i in items)

    async def total_spent(
        self, category: BudgetCategory, period: Optional[datetime] = None
    ) -> float:
        """Sum of expense amounts in the month containing ``period``."""
        items = await self._items_in_month(category, period or utcnow())
        return sum(i.amount for i in items if not i.is_income)

    async def total_income(
        self, category: BudgetCategory, period: Optional[datetime] = None
    ) -> float:
        """Sum of income amounts in the month containing ``period``."""
        items = await self._items_in_month(category, period or utcnow())
        return sum(i.amount for i in items if i.is_income)

    def _budget_name(self, category: BudgetCategory) -> str:
        return f"{category.name} Budget"

    async def get_budget_amount(
        self, category: BudgetCategory, period: datetime
    ) -> float:
        """Planned budget of a category for the month containing ``period``."""
        name = self._budget_name(category)
        for item in await self._items_in_month(category, period):
            if item.name == name:
                return item.budget_amount
        return 0.0

    async def set_budget_amount(
        self, category: BudgetCategory, amount: float, period: datetime
    ) -> BudgetItem:
        """
        Set the planned budget of a category for one month.

        Updates the month's "<category> Budget" item or creates it.
        """
        name = self._budget_name(category)
        for item in await self._items_in_month(category, period):
            if item.name == name:
                item.budget_amount = amount
                item.amount = amount
                return await self.save_item(item)

        return await self.create_item(
            name=name,
            amount=amount,
            budget_amount=amount,
            date=period,
            category_id=category.id,
        )
