from conftest import CATALOG_PAYLOAD, make_book, make_package

from vshelp_cli.index.naming import (
    SETUP_INDEX_NAME,
    book_file_name,
    group_file_name,
    package_file_name,
    package_key,
)
from vshelp_cli.index.parser import parse_catalog
from vshelp_cli.index.writer import (
    render_book_index,
    render_group_index,
    render_setup_index,
)
from vshelp_cli.models.catalog import BookGroup


def test_file_names():
    group = BookGroup(name="Visual Studio 2012", code="vs_2012")
    book = make_book("C# Reference", [])
    package = make_package("Visual_Studio_21798_cs_1")

    assert SETUP_INDEX_NAME == "HelpContentSetup.msha"
    assert group_file_name(group) == "product-vs_2012.xml"
    assert book_file_name(book) == "book-c#_reference.xml"
    assert package_file_name(package) == "Visual_Studio_21798_cs_1.cab"


def test_unsafe_characters_are_percent_encoded():
    assert package_file_name(make_package("a\\b/c:d")) == "a%5Cb%2Fc%3Ad.cab"
    assert package_file_name(make_package("Help:Part1")) == "Help%3APart1.cab"
    assert package_file_name(make_package("100%")) == "100%25.cab"


def test_package_file_names_do_not_collide():
    names = ["A:B", "AB", "A%3AB", "A%B"]

    file_names = {package_file_name(make_package(name)) for name in names}

    assert len(file_names) == len(names)


def test_reserved_device_names_are_encoded():
    assert package_file_name(make_package("CON")) == "CO%4E.cab"
    assert package_file_name(make_package("con")) == "co%4E.cab"
    assert package_key(make_package("con")) == package_key(make_package("CON"))


def test_package_key_ignores_case():
    assert package_key(make_package("Foo")) == package_key(make_package("FOO"))
    assert package_key(make_package("Help:Part1")) == "HELP%3APART1"


def test_rendering_is_deterministic():
    first = parse_catalog(CATALOG_PAYLOAD)
    second = parse_catalog(CATALOG_PAYLOAD)

    assert render_setup_index(first) == render_setup_index(second)
    assert render_group_index(first[0]) == render_group_index(second[0])
    assert render_book_index(first[0], first[0].books[0]) == render_book_index(
        second[0], second[0].books[0]
    )


def test_setup_index_lists_every_group():
    book_groups = parse_catalog(CATALOG_PAYLOAD)

    text = render_setup_index(book_groups)

    assert '<body class="product-list">' in text
    assert 'href="product-vs_2012.xml"' in text
    assert 'href="product-netfx_45.xml"' in text
    assert text.index("vs_2012") < text.index("netfx_45")


def test_group_index_lists_unwanted_books():
    group = parse_catalog(CATALOG_PAYLOAD)[0]
    group.books[0].wanted = True

    text = render_group_index(group)

    assert '<body class="product">' in text
    assert 'href="book-csharp_ref.xml"' in text
    assert 'href="book-vb_ref.xml"' in text


def test_book_index_points_at_cached_packages():
    group = parse_catalog(CATALOG_PAYLOAD)[0]

    text = render_book_index(group, group.books[0])

    assert '<body class="book">' in text
    assert 'href="Packages/Visual_Studio_21798_cs_1.cab"' in text
    assert 'href="Packages/Shared_Package.cab"' in text
    assert "2012-08-21T12:06:43.123456Z" in text
    assert '<span class="package-size-bytes">500000</span>' in text
    assert 'href="/content/cs_1"' in text
    assert '<span class="product-code">vs_2012</span>' in text


def test_text_is_escaped():
    group = parse_catalog(CATALOG_PAYLOAD)[0]

    text = render_book_index(group, group.books[0])

    assert "C# &amp; language reference" in text
    assert "C# & language" not in text


def test_rendered_book_index_parses_back_through_bs4():
    from bs4 import BeautifulSoup

    group = parse_catalog(CATALOG_PAYLOAD)[0]
    soup = BeautifulSoup(render_book_index(group, group.books[0]), "html.parser")

    names = [span.get_text() for span in soup.select("div.package > span.name")]
    assert names == ["Visual_Studio_21798_cs_1", "Shared_Package"]
