"""
Tests for identifier helpers and bounded DOM reads.
"""

import asyncio

import pytest

from flowscribe.exceptions import DomTimeoutError, ElementDetachedError
from flowscribe.utils.identifiers import (
    clean_label,
    make_page_class_name,
    make_safe_identifier,
    to_pascal_case,
    to_snake_case,
)
from flowscribe.utils.timeouts import read_or_default, with_timeout


class TestIdentifiers:
    """Tests for label to identifier conversion."""

    def test_strips_hotkey_hints(self):
        """Test that (Alt+N) hints disappear."""
        assert clean_label("New (Alt+N)") == "New"
        assert make_safe_identifier("New (Alt+N)") == "new"

    def test_strips_private_use_glyphs(self):
        assert clean_label("\ue001Save\u200b") == "Save"

    def test_leading_digit(self):
        """Test that identifiers never start with a digit."""
        assert make_safe_identifier("2nd address") == "_2ndAddress"
        assert to_snake_case("2nd address") == "_2nd_address"

    def test_empty_label(self):
        assert make_safe_identifier("  ") == "unnamed"
        assert to_pascal_case("") == "Unnamed"

    def test_pascal_keeps_inner_capitals(self):
        """Test that menu item names survive."""
        assert to_pascal_case("SalesTable") == "SalesTable"
        assert to_pascal_case("all sales orders") == "AllSalesOrders"

    def test_snake_case(self):
        assert to_snake_case("newButton") == "new_button"
        assert to_snake_case("AllSalesOrdersListPage") == "all_sales_orders_list_page"

    def test_page_class_name(self):
        """Test pattern suffixes are applied once."""
        assert make_page_class_name("All sales orders", "ListPage") == "AllSalesOrdersListPage"
        assert make_page_class_name("Customer list", "ListPage") == "CustomerListPage"
        assert make_page_class_name("Sales order", "DetailsPage") == "SalesOrderPage"
        assert make_page_class_name("Confirm Dialog", "Dialog") == "ConfirmDialog"


class TestTimeouts:
    """Tests for bounded reads."""

    @pytest.mark.asyncio
    async def test_with_timeout_returns_value(self):
        async def read():
            return "value"

        assert await with_timeout(read(), 500) == "value"

    @pytest.mark.asyncio
    async def test_with_timeout_raises(self):
        """Test that slow reads raise DomTimeoutError."""
        with pytest.raises(DomTimeoutError) as exc_info:
            await with_timeout(asyncio.sleep(1), 10, "too slow")
        assert exc_info.value.timeout_ms == 10

    @pytest.mark.asyncio
    async def test_read_or_default_on_dom_error(self):
        """Test that DOM failures fall back to the default."""
        async def detached():
            raise ElementDetachedError("gone")

        assert await read_or_default(detached(), "fallback", 500) == "fallback"
        assert await read_or_default(asyncio.sleep(1), [], 10) == []

    @pytest.mark.asyncio
    async def test_read_or_default_propagates_other_errors(self):
        async def broken():
            raise RuntimeError("bug")

        with pytest.raises(RuntimeError):
            await read_or_default(broken(), None, 500)
