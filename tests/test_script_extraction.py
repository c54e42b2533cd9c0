import pytest

from intl_analyzer.parsing.errors import ParseError
from intl_analyzer.parsing.script import extract_script_keys


def test_member_call_on_intl_service():
    source = """
    import Controller from '@ember/controller';

    export default class ApplicationController extends Controller {
      foo() {
        return this.intl.t('foo.bar.hello');
      }
    }
    """
    assert extract_script_keys(source) == {"foo.bar.hello"}


def test_bare_and_any_object_calls():
    source = """
    const { t } = this.intl;
    t('bare.key');
    anything.deeply.nested.t("member.key");
    t('escaped\\'quote');
    """
    assert extract_script_keys(source) == {"bare.key", "member.key", "escaped'quote"}


def test_conditional_arguments_keep_literal_branches_only():
    source = """
    t(isActive ? 'state.active' : 'state.inactive');
    this.intl.t(flag ? ('paren.key') : someVariable);
    t(someVariable ? other : another);
    """
    assert extract_script_keys(source) == {"state.active", "state.inactive", "paren.key"}


def test_non_literal_arguments_are_ignored():
    source = """
    import { bar } from '../utils/consts';
    this.intl.t(bar);
    t();
    t(`template.literal`);
    t('prefix.' + suffix);
    this.intl['t']('computed.property');
    """
    assert extract_script_keys(source) == set()


def test_format_message():
    source = """
    const intl = useIntl();
    intl.formatMessage({ id: 'hook.translation' });
    intl.formatMessage({ id: true ? 'hook.alternate' : 'hook.consequent' });
    formatMessage({ description: 'ignored', id: "bare.format" });
    this.intl.formatMessage({ id: 'not.intl.object' });
    intl.formatMessage(descriptor);
    """
    assert extract_script_keys(source) == {
        "hook.translation",
        "hook.alternate",
        "hook.consequent",
        "bare.format",
    }


def test_decorators_class_fields_and_dynamic_import():
    source = """
    import Component from '@glimmer/component';
    import { service } from '@ember/service';
    import { tracked } from '@glimmer/tracking';

    export default class Widget extends Component {
      @service intl;
      @tracked count = 0;
      static defaultLabel = 'none';

      @action
      async load() {
        const module = await import('./heavy');
        return this.intl.t('decorated.key', { count: this.count });
      }
    }
    """
    assert extract_script_keys(source) == {"decorated.key"}


def test_custom_helper_names():
    source = "translate('custom.key'); this.translate('member.custom'); t('default.key');"
    keys = extract_script_keys(source, helpers=("t", "translate"))
    assert keys == {"custom.key", "member.custom", "default.key"}


def test_typescript_grammar():
    source = """
    interface Props { label: string }
    export function label(intl: IntlService, props: Props): string {
      return intl.t('ts.key') as string;
    }
    const x = t<string>('generic.key');
    """
    assert extract_script_keys(source, grammar="typescript") == {"ts.key", "generic.key"}


def test_jsx_formatted_message():
    source = """
    import { FormattedMessage, useIntl } from 'react-intl';

    export function MyLocalizedComponent() {
      const { t } = useIntl();
      return (
        <div>
          {t('hook-translation')}
          <FormattedMessage id="jsx-translation" />
          <FormattedMessage id={open ? 'jsx.open' : 'jsx.closed'}>{(txt) => txt}</FormattedMessage>
          <FormattedHTMLMessage id="jsx-translation-html" />
        </div>
      );
    }
    """
    assert extract_script_keys(source, jsx=True) == {
        "hook-translation",
        "jsx-translation",
        "jsx.open",
        "jsx.closed",
    }


def test_formatted_message_ignored_outside_jsx_dialect():
    source = 'const el = <FormattedMessage id="only.in.jsx" />;'
    assert extract_script_keys(source) == set()


def test_tsx_grammar():
    source = """
    import { FormattedMessage } from 'react-intl';

    export function MyLocalizedComponent(): JSX.Element {
      return (
        <div>
          <FormattedMessage id="tsx-translation" />
        </div>
      );
    }
    """
    assert extract_script_keys(source, grammar="tsx", jsx=True) == {"tsx-translation"}


@pytest.mark.parametrize(
    "source",
    [
        "t('unterminated'",
        "function broken( {",
        "const = 5;",
    ],
)
def test_syntax_errors_raise(source):
    with pytest.raises(ParseError):
        extract_script_keys(source)


def test_syntax_error_location():
    with pytest.raises(ParseError) as info:
        extract_script_keys("const ok = 1;\nconst = 2;\n")
    assert info.value.line == 2
