import pytest

from symposium.config.config import MODEL_PRICING
from symposium.service.chat.pricing import cost_cents


def test_cost_for_known_models():
    # 1000 * 2.0 + 500 * 8.0 = 6000 -> 0.6 cents -> 1
    assert cost_cents("gpt-4.1", 1000, 500) == 1
    # 100000 * 0.4 + 50000 * 1.6 = 120000 -> 12 cents
    assert cost_cents("gpt-4.1-mini", 100_000, 50_000) == 12
    # 1_000_000 * 1.1 + 1_000_000 * 4.4 = 550 cents
    assert cost_cents("o4-mini", 1_000_000, 1_000_000) == 550


def test_cost_rounds_half_up():
    table = {"m": (1.0, 0.0)}

    assert cost_cents("m", 5000, 0, pricing=table) == 1
    assert cost_cents("m", 4999, 0, pricing=table) == 0
    assert cost_cents("m", 15000, 0, pricing=table) == 2


def test_cost_for_unknown_model_is_zero():
    assert cost_cents("gpt-2", 1_000_000, 1_000_000) == 0


def test_cost_is_never_negative():
    assert cost_cents("gpt-4.1", 0, 0) == 0
    assert cost_cents("gpt-4.1", -100, None) == 0


@pytest.mark.parametrize("model_id", sorted(MODEL_PRICING))
def test_cost_is_zero_without_tokens_and_never_decreases(model_id):
    counts = [0, 1, 499, 500, 5_000, 12_345, 100_000, 2_000_000]

    assert cost_cents(model_id, 0, 0) == 0
    for fixed in counts:
        by_input = [cost_cents(model_id, n, fixed) for n in counts]
        by_output = [cost_cents(model_id, fixed, n) for n in counts]
        assert by_input == sorted(by_input)
        assert by_output == sorted(by_output)
