import pytest

from pickup_match_manager.domain.participant import raw_id


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("<@123>", "123"),
        ("<@!123>", "123"),
        ("<@&123>", "123"),
        (" 123 ", "123"),
        (123, "123"),
        ("plain", "plain"),
    ],
)
def test_raw_id(value: object, expected: str) -> None:
    assert raw_id(value) == expected
