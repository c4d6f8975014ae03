"""Tests for rm_common.cents."""

import pytest

from src.rm_common.cents import cents_to_display, is_positive_cents, mean_cents


class TestIsPositiveCents:
    @pytest.mark.parametrize("value", [1, 150, 10**12])
    def test_positive_ints(self, value: int) -> None:
        assert is_positive_cents(value)

    @pytest.mark.parametrize("value", [0, -1, 1.5, 150.0, "150", None, True, float("nan")])
    def test_rejects_everything_else(self, value: object) -> None:
        assert not is_positive_cents(value)


class TestCentsToDisplay:
    def test_formats_pounds_and_pence(self) -> None:
        assert cents_to_display(6500) == "£65.00"
        assert cents_to_display(5) == "£0.05"
        assert cents_to_display(123456) == "£1,234.56"

    def test_negative(self) -> None:
        assert cents_to_display(-1200) == "-£12.00"


class TestMeanCents:
    def test_empty_is_none(self) -> None:
        assert mean_cents([]) is None

    def test_exact_mean(self) -> None:
        assert mean_cents([100, 200, 300]) == 200

    def test_rounds_half_up(self) -> None:
        assert mean_cents([100, 101]) == 101  # 100.5
        assert mean_cents([100, 100, 101]) == 100  # 100.33
        assert mean_cents([100, 101, 101]) == 101  # 100.67
