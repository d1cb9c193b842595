from sourcecart.core.adapters import normalize
from sourcecart.core.canonical import CartLineRequest
from sourcecart.core.logging import cart_lines_to_loggable, product_to_loggable
from tests.helpers._payloads import marketplace_a_raw


def _line() -> CartLineRequest:
    return CartLineRequest(
        src="1688",
        pid="610947572360",
        title="Cotton T-shirt",
        image="https://img.example/red.jpg",
        price="12.5",
        quantity=2,
        variant="Color: Red, Size: M",
        vinfo="spec-red-m",
        weight=500,
        volume=1000,
        min_quantity=2,
        dom_shipping="6.5",
        seller="BBBseller01",
    )


def test_product_to_loggable_extrahigh_includes_raw() -> None:
    normalized = normalize(marketplace_a_raw(), "1688")

    loggable = product_to_loggable(normalized, verbosity="extrahigh")

    assert loggable["product"]["raw"]["offerId"] == 610947572360
    assert len(loggable["variants"]) == 3


def test_product_to_loggable_high_excludes_raw() -> None:
    loggable = product_to_loggable(normalize(marketplace_a_raw(), "1688"), verbosity="high")

    assert "raw" not in loggable
    assert loggable["variants"][0]["key"] == "spec-red-m"


def test_product_to_loggable_medium_summarizes_variants_with_currency() -> None:
    loggable = product_to_loggable(normalize(marketplace_a_raw(), "1688"), verbosity="medium")

    assert loggable["id"] == "610947572360"
    assert loggable["images"] == {"count": 2}
    assert loggable["variants_count"] == 3
    assert loggable["price"].endswith("12.5")
    assert loggable["price"] != "12.5"
    assert loggable["variants"][0] == {
        "label": "Color: Red, Size: M",
        "price": loggable["price"],
        "stock": 3,
        "has_image": True,
    }


def test_product_to_loggable_low_truncates_title() -> None:
    normalized = normalize(marketplace_a_raw(subjectTrans="T" * 100), "1688")

    loggable = product_to_loggable(normalized, verbosity="low")

    assert loggable["title"].endswith("... [truncated]")
    assert "variants" not in loggable


def test_unknown_verbosity_falls_back_to_medium() -> None:
    normalized = normalize(marketplace_a_raw(), "1688")
    assert product_to_loggable(normalized, verbosity="loud") == product_to_loggable(normalized, verbosity="medium")


def test_cart_lines_to_loggable_levels() -> None:
    lines = [_line()]

    assert cart_lines_to_loggable(lines, verbosity="low") == [{"vinfo": "spec-red-m", "quantity": 2}]
    assert cart_lines_to_loggable(lines, verbosity="high") == [lines[0].to_payload()]
    medium = cart_lines_to_loggable(lines, currency="USD")
    assert medium[0]["price"] == "$12.5"
    assert medium[0]["weight"] == 500
