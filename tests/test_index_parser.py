from datetime import datetime, timezone

import pytest
from conftest import CATALOG_PAYLOAD, LOCALES_PAYLOAD

from vshelp_cli.exceptions import CatalogParseError
from vshelp_cli.index.naming import package_key
from vshelp_cli.index.parser import parse_catalog, parse_locales
from vshelp_cli.models.catalog import Locale, PackageState


def test_parse_locales():
    locales = parse_locales(LOCALES_PAYLOAD)

    assert locales == [
        Locale("en-us", "catalogs/visualstudio11/en-us"),
        Locale("de-de", "catalogs/visualstudio11/de-de"),
    ]
    assert str(locales[0]) == "en-us"


def test_parse_locales_accepts_byte_order_mark():
    locales = parse_locales(b"\xef\xbb\xbf" + LOCALES_PAYLOAD)
    assert [locale.code for locale in locales] == ["en-us", "de-de"]


def test_parse_catalog_groups_and_books():
    book_groups = parse_catalog(CATALOG_PAYLOAD)

    assert [g.code for g in book_groups] == ["vs_2012", "netfx_45"]
    vs = book_groups[0]
    assert vs.name == "Visual Studio 2012"
    assert vs.vendor == "Microsoft"
    assert vs.locale == "en-us"
    assert [b.code for b in vs.books] == ["csharp_ref", "vb_ref"]

    csharp = vs.books[0]
    assert csharp.category == "Languages"
    assert csharp.description == "C# & language reference"
    assert csharp.wanted is False

    netfx = book_groups[1]
    assert netfx.description == ""
    assert netfx.books[0].packages == []


def test_parse_catalog_package_fields():
    package = parse_catalog(CATALOG_PAYLOAD)[0].books[0].packages[0]

    assert package.name == "Visual_Studio_21798_cs_1"
    assert package.link == "/packages/en-us/cs_1.cab"
    assert package.size == 500000
    assert package.size_uncompressed == 900000
    assert package.etag == "abc123"
    assert package.deployed is True
    assert package.constituent_link == "/content/cs_1"
    assert package.state == PackageState.NOT_DOWNLOADED
    # seven fractional digits are cut to microseconds
    assert package.last_modified == datetime(
        2012, 8, 21, 12, 6, 43, 123456, tzinfo=timezone.utc
    )


def test_parse_catalog_optional_package_fields_default():
    package = parse_catalog(CATALOG_PAYLOAD)[0].books[0].packages[1]

    assert package.name == "Shared_Package"
    assert package.etag == ""
    assert package.size_uncompressed == 0
    assert package.constituent_link == ""
    assert package.last_modified.tzinfo is not None


def test_shared_package_names_are_kept_per_book():
    books = parse_catalog(CATALOG_PAYLOAD)[0].books

    assert package_key(books[0].packages[1]) == package_key(books[1].packages[0])
    assert books[1].packages[0].size == 1300


def test_parse_deployed_false():
    payload = CATALOG_PAYLOAD.replace(
        b'<span class="deployed">true</span>', b'<span class="deployed">False</span>'
    )
    package = parse_catalog(payload)[0].books[0].packages[0]
    assert package.deployed is False


@pytest.mark.parametrize(
    "payload, message",
    [
        (b"", "empty"),
        (b"\xff\xfe<html>", "UTF-8"),
        (b"just some text", "no <body>"),
        (LOCALES_PAYLOAD, "product-groups"),
    ],
)
def test_parse_catalog_rejects_malformed_documents(payload, message):
    with pytest.raises(CatalogParseError, match=message):
        parse_catalog(payload)


def test_parse_locales_rejects_catalog_document():
    with pytest.raises(CatalogParseError, match="locales"):
        parse_locales(CATALOG_PAYLOAD)


def test_missing_package_size_is_rejected():
    payload = CATALOG_PAYLOAD.replace(
        b'<span class="package-size-bytes">1200</span>', b""
    )
    with pytest.raises(CatalogParseError, match="package-size-bytes"):
        parse_catalog(payload)


def test_invalid_number_is_rejected():
    payload = CATALOG_PAYLOAD.replace(b">500000<", b">lots<")
    with pytest.raises(CatalogParseError, match="Invalid number 'lots'"):
        parse_catalog(payload)


def test_invalid_timestamp_is_rejected():
    payload = CATALOG_PAYLOAD.replace(
        b"2012-08-21T12:06:43.1234567Z", b"last tuesday"
    )
    with pytest.raises(CatalogParseError, match="Invalid timestamp"):
        parse_catalog(payload)


def test_missing_book_id_is_rejected():
    payload = CATALOG_PAYLOAD.replace(b'<span class="id">vb_ref</span>', b"")
    with pytest.raises(CatalogParseError, match="Visual Basic Reference"):
        parse_catalog(payload)


def test_package_name_with_unsafe_characters_is_kept():
    payload = CATALOG_PAYLOAD.replace(
        b'<span class="name">Shared_Package</span>',
        b'<span class="name">Help:Part1</span>',
    )
    package = parse_catalog(payload)[0].books[0].packages[1]
    assert package.name == "Help:Part1"


def test_package_name_too_long_for_a_file_is_rejected():
    payload = CATALOG_PAYLOAD.replace(
        b'<span class="name">Shared_Package</span>',
        b'<span class="name">' + b"x" * 300 + b"</span>",
    )
    with pytest.raises(CatalogParseError, match="cannot be stored as a file"):
        parse_catalog(payload)
