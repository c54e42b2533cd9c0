import pytest

from intl_analyzer.parsing.errors import ParseError
from intl_analyzer.parsing.template_tag import (
    PLACEHOLDER,
    extract_component_keys,
    preprocess_template_tags,
)

CLASS_COMPONENT = """\
import Component from '@glimmer/component';
import { service } from '@ember/service';

export default class Greeting extends Component {
  @service intl;

  get label() {
    return this.intl.t('script.key');
  }

  <template>
    <h1 title={{this.label}}>{{t "template.key"}}</h1>
  </template>
}
"""


def test_class_member_template_becomes_static_block():
    result = preprocess_template_tags(CLASS_COMPONENT)
    assert len(result.templates) == 1
    assert "{{t \"template.key\"}}" in result.templates[0]
    assert f"static {{ {PLACEHOLDER}(`" in result.script
    assert "<template>" not in result.script
    assert result.script.count("\n") - CLASS_COMPONENT.count("\n") == 2  # appended import


def test_class_component_keys():
    assert extract_component_keys(CLASS_COMPONENT) == {"script.key", "template.key"}


def test_statement_and_expression_templates():
    source = """\
import { on } from '@ember/modifier';

const Button = <template><button>{{t "button.label"}}</button></template>;

<template>
  <Button />
  {{t (if @open "menu.open" "menu.closed")}}
</template>
"""
    result = preprocess_template_tags(source)
    assert len(result.templates) == 2
    assert f"export default {PLACEHOLDER}(`" in result.script
    assert extract_component_keys(source) == {"button.label", "menu.open", "menu.closed"}


def test_template_content_with_backticks_and_interpolation_markers():
    source = "<template>{{t \"tick.key\"}} `code` ${notJs} \\n</template>\n"
    assert extract_component_keys(source) == {"tick.key"}


def test_strings_and_comments_are_not_templates():
    source = """\
// <template>{{t "in.comment"}}</template>
const html = '<template>{{t "in.string"}}</template>';
const tpl = `<template>${'{{t "in.literal"}}'}</template>`;
"""
    result = preprocess_template_tags(source)
    assert result.templates == []
    assert extract_component_keys(source) == set()


def test_typescript_component():
    source = """\
import Component from '@glimmer/component';

interface Signature { Args: { count: number } }

export default class Counter extends Component<Signature> {
  label: string = 'x';

  <template>{{t "gts.key" count=@count}}</template>
}
"""
    assert extract_component_keys(source, grammar="typescript") == {"gts.key"}


def test_runtime_template_calls_need_the_compiler_import():
    source = """\
import { template } from '@ember/template-compiler';

export const Real = template('{{t "real.key"}}');

function render(template) {
  return template('{{t "shadowed.param"}}');
}

function other() {
  const template = (s) => s;
  return template(`{{t "shadowed.local"}}`);
}
"""
    assert extract_component_keys(source) == {"real.key"}


def test_same_named_local_function_is_not_trusted():
    source = """\
function template(text) { return text; }
export const Fake = template('{{t "fake.key"}}');
"""
    assert extract_component_keys(source) == set()


def test_helpers_and_concat_apply_to_templates():
    source = '<template>{{t-html (concat "a." "b")}}</template>\n'
    assert extract_component_keys(source, helpers=("t", "t-html"), analyze_concat=True) == {"a.b"}


def test_unclosed_template_tag_raises():
    with pytest.raises(ParseError, match="Unclosed <template> tag"):
        preprocess_template_tags("<template>{{t \"x\"}}\n")


def test_invalid_embedded_template_raises():
    with pytest.raises(ParseError, match="Unclosed block"):
        extract_component_keys("<template>{{#if a}}</template>\n")


@pytest.mark.parametrize(
    "prefix",
    ["", "// greeting component\n", "/*\n * greeting component\n */\n"],
)
def test_template_only_component(prefix):
    source = prefix + '<template>{{t "hello"}}</template>\n'
    result = preprocess_template_tags(source)
    assert result.templates == ['{{t "hello"}}']
    assert f"export default {PLACEHOLDER}(`" in result.script
    assert extract_component_keys(source) == {"hello"}


def test_template_after_statement_without_semicolon():
    source = """\
import Greeting from './greeting'

<template>
  <Greeting />
  {{t "after.import"}}
</template>
"""
    result = preprocess_template_tags(source)
    assert f";export default {PLACEHOLDER}(`" in result.script
    assert extract_component_keys(source) == {"after.import"}


def test_class_member_template_after_field_without_semicolon():
    source = """\
import Component from '@glimmer/component';

export default class Label extends Component {
  text = 'x'
  <template>{{t "field.key"}}</template>
}
"""
    result = preprocess_template_tags(source)
    assert f";static {{ {PLACEHOLDER}(`" in result.script
    assert extract_component_keys(source) == {"field.key"}


def test_comparison_is_not_a_template():
    source = "const less = a <template> b;\n"
    assert preprocess_template_tags(source).templates == []
