import pytest

from intl_analyzer.parsing.errors import ParseError
from intl_analyzer.parsing.handlebars import (
    BlockStatement,
    MustacheStatement,
    PathExpression,
    StringLiteral,
    SubExpression,
    iter_nodes,
    parse_template,
    extract_template_keys,
)


@pytest.mark.parametrize(
    "source, expected",
    [
        ('{{t "foo.bar"}}', {"foo.bar"}),
        ("{{t 'single.quoted'}}", {"single.quoted"}),
        ('{{{t "raw.key"}}}', {"raw.key"}),
        ('{{~t "stripped.key"~}}', {"stripped.key"}),
        ('{{t "with.hash" count=1 name=this.name}}', {"with.hash"}),
        ('{{my-component label=(t "nested.key")}}', {"nested.key"}),
        ('<div title={{t "attr.key"}} {{on "click" (fn this.go (t "modifier.key"))}}></div>', {"attr.key", "modifier.key"}),
        ('{{t (if cond "yes.key" "no.key")}}', {"yes.key", "no.key"}),
        ('{{t (if cond "only.key")}}', {"only.key", ""}),
        ('{{t (if cond this.dynamic "static.key")}}', {"static.key"}),
        ("{{t this.dynamicKey}}", set()),
        ("{{t}}", set()),
        ('{{this.t "not.a.helper"}}', set()),
        ('{{#t "block.form"}}{{/t}}', set()),
        ('{{!-- {{t "commented.out"}} --}}{{! {{t "also.commented"}}', set()),
        ('\\{{t "escaped.key"}}', set()),
        ('<!-- {{t "html.comment"}} -->', set()),
    ],
)
def test_template_keys(source, expected):
    assert extract_template_keys(source) == expected


def test_keys_inside_blocks_and_inverse():
    source = """
    {{#if this.show}}
      {{t "in.program"}}
    {{else if this.other}}
      {{t "in.chain"}}
    {{else}}
      {{t "in.inverse"}}
    {{/if}}
    {{#each this.items as |item index|}}
      <li>{{t "in.each" item=item}}</li>
    {{/each}}
    {{#my-component title=(t "block.hash") as |c|}}{{c.body}}{{/my-component}}
    """
    assert extract_template_keys(source) == {
        "in.program",
        "in.chain",
        "in.inverse",
        "in.each",
        "block.hash",
    }


def test_custom_helpers():
    source = '{{t-html "html.key"}} {{t "plain.key"}} {{translate "ignored"}}'
    assert extract_template_keys(source, helpers=("t", "t-html")) == {"html.key", "plain.key"}


def test_concat_requires_option():
    source = '{{t (concat "prefix." "suffix")}}'
    assert extract_template_keys(source) == set()
    assert extract_template_keys(source, analyze_concat=True) == {"prefix.suffix"}


def test_concat_with_conditional_and_dynamic_parts():
    source = """
    {{t (concat "menu." (if this.open "open" "closed") ".label")}}
    {{t (concat "dynamic." this.name)}}
    """
    assert extract_template_keys(source, analyze_concat=True) == {
        "menu.open.label",
        "menu.closed.label",
    }


def test_parse_tree_shape():
    tree = parse_template('<p>{{#if a}}{{t "x" (t "y")}}{{/if}}</p>')
    block = next(n for n in iter_nodes(tree) if isinstance(n, BlockStatement))
    assert block.path == PathExpression("if")
    mustache = block.program.body[0]
    assert isinstance(mustache, MustacheStatement)
    assert mustache.params[0] == StringLiteral("x")
    assert isinstance(mustache.params[1], SubExpression)


def test_inverse_section_swaps_program():
    tree = parse_template('{{^if a}}{{t "inverted"}}{{/if}}')
    block = tree.body[0]
    assert isinstance(block, BlockStatement)
    assert block.program.body == []
    assert block.inverse is not None and len(block.inverse.body) == 1


@pytest.mark.parametrize(
    "source",
    [
        '{{t "unterminated"',
        '{{t "unterminated}}',
        "{{#if cond}}never closed",
        "{{#if cond}}{{/each}}",
        "{{/if}}",
        "{{else}}",
        "{{}}",
        '{{t (concat "a" "b"}}',
        '{{t "a")}}',
        "{{> partial}}",
        "{{#if a}}{{else}}{{else}}{{/if}}",
        '{{t foo=1 "positional"}}',
    ],
)
def test_malformed_templates_raise(source):
    with pytest.raises(ParseError):
        parse_template(source)


def test_parse_error_reports_line():
    with pytest.raises(ParseError) as info:
        parse_template("<div>\n  ok\n</div>\n{{#if a}}\n")
    assert info.value.line == 4
