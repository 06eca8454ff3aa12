"""
Tests for RecorderService outside a live browser.
"""

import pytest

from flowscribe.exceptions import RecorderStateError
from flowscribe.models.locators import PlatformAttributeLocator
from flowscribe.service import RecorderService

NEW_BUTTON = PlatformAttributeLocator("data-dyn-controlname", "SystemDefinedNewButton")


@pytest.fixture
def service(settings):
    return RecorderService(settings)


class TestRecorderService:
    """Test the service boundary."""

    def test_idle_service(self, service):
        assert service.session is None
        assert not service.is_recording

    def test_render_step(self, service, click):
        """Test that a heavy click previews with its wait."""
        step = click(1, NEW_BUTTON, field_name="newButton", method_name="clickNew")
        assert service.render_step(step) == "all_sales_orders_list_page.click_new()\nwait_for_platform(page)"

    def test_compile_given_steps(self, service, tmp_path, nav, click):
        steps = [nav(1), click(2, NEW_BUTTON, field_name="newButton", method_name="clickNew")]
        result = service.compile(steps, flow_name="open_new_order", output_dir=str(tmp_path))

        assert result.success
        assert "tests/d365/specs/open_new_order/test_open_new_order.py" in result.files

    def test_compile_without_steps(self, service, tmp_path):
        result = service.compile(output_dir=str(tmp_path))
        assert not result.success
        assert "no steps" in result.error

    @pytest.mark.asyncio
    async def test_stop_without_recording(self, service):
        with pytest.raises(RecorderStateError):
            await service.stop()

    @pytest.mark.asyncio
    async def test_preview_without_recording(self, service):
        with pytest.raises(RecorderStateError):
            async for _ in service.preview():
                pass
