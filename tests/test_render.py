# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

import pytest

from xmlbuild import XML_PROLOG, XMLElement
from xmlbuild.render import escape_text, render_compact, render_pretty, render_text, split_cdata


def make_point(lat: float, lon: float) -> XMLElement:
    return XMLElement('point').with_attr('lat', lat).with_attr('lon', lon)


class TestEscaping:

    @pytest.mark.parametrize('text', ['', 'plain text', 'John Doe = 28; [ok]', 'tab\tand\nnewline'])
    def test_plain_text_is_unchanged(self, text: str) -> None:
        assert escape_text(text) == text
        assert render_text(text) == text

    @pytest.mark.parametrize(('text', 'expected'), [
        ('1<2', '1&lt;2'),
        ('3>2', '3&gt;2'),
        ('5&1=1', '5&amp;1=1'),
        ("'a", '&apos;a'),
        ('"Hello World"', '&quot;Hello World&quot;'),
    ])
    def test_special_characters(self, text: str, expected: str) -> None:
        assert escape_text(text) == expected

    def test_entities_are_not_escaped_twice(self) -> None:
        assert escape_text('&lt;') == '&amp;lt;'
        assert escape_text('<&>') == '&lt;&amp;&gt;'
        assert escape_text('&quot;"') == '&amp;quot;&quot;'


class TestCDATA:

    @pytest.mark.parametrize(('text', 'expected'), [
        ('<![CDATA[]]>', ('', ('<![CDATA[]]>', ''))),
        ('<![CDATA[]>', ('<![CDATA[]>', None)),
        ('<![CDTA[]]>', ('<![CDTA[]]>', None)),
        ('hello<![CDATA[]]>', ('hello', ('<![CDATA[]]>', ''))),
        ('hello<![CDATA[]]>world', ('hello', ('<![CDATA[]]>', 'world'))),
        ('hello<![CDATA[world]]>', ('hello', ('<![CDATA[world]]>', ''))),
        ('hello<![CDATA[wor]]>ld', ('hello', ('<![CDATA[wor]]>', 'ld'))),
        ('<![CDATA[hello]]>world', ('', ('<![CDATA[hello]]>', 'world'))),
        ('<![CDATA[hel]]>lo]]>world', ('', ('<![CDATA[hel]]>', 'lo]]>world'))),
        ('<![CDATA[hel<![CDATA[lo]]>world', ('', ('<![CDATA[hel<![CDATA[lo]]>', 'world'))),
        (']]>before<![CDATA[x]]>', (']]>before', ('<![CDATA[x]]>', ''))),
    ])
    def test_split_cdata(self, text: str, expected: tuple) -> None:
        assert split_cdata(text) == expected

    def test_cdata_passthrough(self) -> None:
        assert render_text('<![CDATA[a<b]]>') == '<![CDATA[a<b]]>'
        assert render_text('x<![CDATA[a<b]]>y>z') == 'x<![CDATA[a<b]]>y&gt;z'
        assert render_text('1<2<![CDATA[1<2]]>1<2') == '1&lt;2<![CDATA[1<2]]>1&lt;2'

    def test_unterminated_cdata_is_plain_text(self) -> None:
        assert render_text('<![CDATA[a<b') == '&lt;![CDATA[a&lt;b'

    def test_only_the_first_cdata_span_is_kept(self) -> None:
        text = '<![CDATA[<1>]]>&<![CDATA[<2>]]>'
        assert render_text(text) == '<![CDATA[<1>]]>&amp;&lt;![CDATA[&lt;2&gt;]]&gt;'


class TestCompactRendering:

    def test_self_closing(self) -> None:
        assert render_compact(XMLElement('name')) == '<name/>'
        assert render_compact(XMLElement('name').with_attr('a', 1)) == '<name a="1"/>'

    def test_empty_text_is_not_self_closing(self) -> None:
        assert render_compact(XMLElement('name').with_text('')) == '<name></name>'

    def test_attributes_children_and_text(self) -> None:
        element = XMLElement('test_element').with_attr('a1', 42).with_attr('a2', 24)
        element.set_text('some content')
        element.add_elements([make_point(12.3, 45.6), make_point(32.1, 65.4)])
        expected = '<test_element a1="42" a2="24"><point lat="12.3" lon="45.6"/><point lat="32.1" lon="65.4"/>some content</test_element>'
        assert render_compact(element) == expected

    def test_empty_attribute(self) -> None:
        element = XMLElement('input').with_attr('type', 'checkbox').with_empty_attr('checked')
        assert render_compact(element) == '<input type="checkbox" checked/>'

    def test_attribute_values_are_verbatim(self) -> None:
        element = XMLElement('a').with_attr('title', 'x & y').with_text('x & y')
        assert render_compact(element) == '<a title="x & y">x &amp; y</a>'

    def test_cdata_text(self) -> None:
        assert render_compact(XMLElement('test_element').with_text('<![CDATA[1<2]]>')) == '<test_element><![CDATA[1<2]]></test_element>'


class TestPrettyRendering:

    def test_self_closing(self) -> None:
        assert render_pretty(XMLElement('name'), '\n', '\t') == '<name/>'

    def test_children_and_text(self) -> None:
        element = XMLElement('test_element').with_attr('a1', 42).with_attr('a2', 24)
        element.add_elements([make_point(12.3, 45.6), make_point(32.1, 65.4)])
        element.set_text('some content')
        expected = '<test_element a1="42" a2="24">\n\t<point lat="12.3" lon="45.6"/>\n\t<point lat="32.1" lon="65.4"/>\n\tsome content\n</test_element>'
        assert render_pretty(element, '\n', '\t') == expected

    def test_nested_indentation(self) -> None:
        element = XMLElement('test_element').with_attr('a1', 42).with_attr('a2', 24)
        element.add_element(make_point(12.3, 45.6).with_text('point content'))
        element.add_element(make_point(32.1, 65.4))
        element.set_text('some content')
        expected = (
            '<test_element a1="42" a2="24">\n'
            '\t<point lat="12.3" lon="45.6">\n'
            '\t\tpoint content\n'
            '\t</point>\n'
            '\t<point lat="32.1" lon="65.4"/>\n'
            '\tsome content\n'
            '</test_element>'
        )
        assert render_pretty(element, '\n', '\t') == expected

    def test_deep_nesting_compounds_indentation(self) -> None:
        element = XMLElement('a').with_element(XMLElement('b').with_element(XMLElement('c').with_text('d')))
        assert element.render_pretty('\n', '  ') == '<a>\n  <b>\n    <c>\n      d\n    </c>\n  </b>\n</a>'

    def test_empty_text(self) -> None:
        assert render_pretty(XMLElement('a').with_text(''), '\n', '\t') == '<a>\n</a>'

    def test_multiline_text_is_indented_per_line(self) -> None:
        element = XMLElement('a').with_text('one\ntwo')
        assert element.render_pretty('\n', '\t') == '<a>\n\tone\n\ttwo\n</a>'

    def test_crlf_newline(self) -> None:
        element = XMLElement('a').with_element(XMLElement('b').with_text('c'))
        assert element.render_pretty('\r\n', ' ') == '<a>\r\n <b>\r\n  c\r\n </b>\r\n</a>'

    def test_prolog(self) -> None:
        element = XMLElement('test_element').with_text('some content')
        expected = '<?xml version="1.0" encoding="UTF-8"?>\n<test_element>\n\tsome content\n</test_element>'
        assert element.render_pretty_with_prolog('\n', '\t') == expected
        assert element.render_pretty_with_prolog().startswith(XML_PROLOG + '\n')

    def test_pretty_and_compact_are_equivalent(self) -> None:
        element = XMLElement('root').with_attr('id', 7)
        element.add_element(make_point(1.5, 2.5).with_text('x < y'))
        element.add_element(XMLElement('group').with_elements([make_point(3, 4), XMLElement('empty')], name='item').with_text('<![CDATA[raw > text]]>'))
        element.set_text('tail')
        pretty = element.render_pretty('\n', '\t')
        assert pretty != element.render()
        assert pretty.replace('\n', '').replace('\t', '') == element.render()
