import pytest

from nubefeed.core.feed.brand import BrandResolver


STORE = "123"


def test_store_override_beats_product_fields():
    resolver = BrandResolver(brand_map={STORE: " House Brand "})
    assert resolver.resolve(STORE, {"brand": "Acme"}) == "House Brand"


def test_override_only_applies_to_its_store():
    resolver = BrandResolver(brand_map={"999": "Other"})
    assert resolver.resolve(STORE, {"brand": "Acme"}) == "Acme"


@pytest.mark.parametrize("product,expected", [
    ({"brand": {"name": {"es": "Acme"}}}, "Acme"),
    ({"brand": {"es": "Marca ES"}}, "Marca ES"),
    ({"brand": "  Acme  "}, "Acme"),
    ({"brand": "", "vendor": "Vendor Co"}, "Vendor Co"),
    ({"brand": None, "vendor": " ", "manufacturer": "Maker SA"}, "Maker SA"),
    ({"attributes": {"Marca": "Bag Brand"}}, "Bag Brand"),
    ({"attributes": [{"es": "Color"}], "properties": [{"name": "Brand", "value": "Prop Brand"}]}, "Prop Brand"),
    ({"properties": [{"name": {"es": "marca"}, "value": {"es": "Localized Prop"}}]}, "Localized Prop"),
])
def test_product_field_precedence(product, expected):
    assert BrandResolver().resolve(STORE, product) == expected


def test_global_default_used_last():
    resolver = BrandResolver(default_brand="Fallback")
    assert resolver.resolve(STORE, {"vendor": ""}) == "Fallback"


def test_empty_when_nothing_known():
    assert BrandResolver().resolve(STORE, {}) == ""
    assert BrandResolver().resolve(STORE, None) == ""


@pytest.mark.parametrize("brand", [{"id": 5}, {"id": 5, "slug": "acme"}, {"pt": "Marca PT"}])
def test_brand_object_without_name_or_language_is_skipped(brand):
    resolver = BrandResolver(default_brand="Fallback")
    assert resolver.resolve(STORE, {"brand": brand}) == "Fallback"
    assert resolver.resolve(STORE, {"brand": brand, "vendor": "Vendor Co"}) == "Vendor Co"
