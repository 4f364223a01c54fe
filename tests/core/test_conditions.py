"""Tests for the condition evaluator."""

import pytest as _pytest

import skipgate.conditions as conditions
import skipgate.environment as environment
import skipgate.errors as errors


def _snapshot(host_os: str) -> environment.EnvironmentSnapshot:
    return environment.EnvironmentSnapshot.capture(host_os=host_os)


class TestEvaluate:
    """Tests for evaluate()."""

    def test_absent_condition_is_true(self) -> None:
        """No condition means always excluded."""
        assert conditions.evaluate(None, _snapshot("linux")) is True
        assert conditions.evaluate(None, _snapshot("mswin32")) is True

    def test_always(self) -> None:
        """The always condition holds everywhere."""
        cond = conditions.always()
        assert conditions.evaluate(cond, _snapshot("linux")) is True
        assert conditions.evaluate(cond, _snapshot("mingw32")) is True

    def test_os_family(self) -> None:
        """os_family compares against the snapshot's family."""
        cond = conditions.windows()
        assert conditions.evaluate(cond, _snapshot("mingw32")) is True
        assert conditions.evaluate(cond, _snapshot("win32")) is True
        assert conditions.evaluate(cond, _snapshot("linux")) is False
        assert conditions.evaluate(cond, _snapshot("darwin")) is False

    def test_os_family_respects_override(self) -> None:
        """A forced family wins over the host string."""
        snapshot = environment.EnvironmentSnapshot.capture(host_os="linux", os_family="windows")
        assert conditions.evaluate(conditions.windows(), snapshot) is True

    def test_host_os_matches(self) -> None:
        """host_os_matches searches the raw host OS string."""
        cond = conditions.host_os_matches("mswin|mingw")
        assert conditions.evaluate(cond, _snapshot("x64-mingw32")) is True
        assert conditions.evaluate(cond, _snapshot("i386-mswin32")) is True
        assert conditions.evaluate(cond, _snapshot("cygwin")) is False
        assert conditions.evaluate(cond, _snapshot("linux")) is False

    def test_not(self) -> None:
        """not negates its inner condition."""
        cond = conditions.parse_condition({"kind": "not", "condition": "windows"})
        assert conditions.evaluate(cond, _snapshot("linux")) is True
        assert conditions.evaluate(cond, _snapshot("win32")) is False

    def test_any_of(self) -> None:
        """any_of holds when one inner condition holds."""
        cond = conditions.parse_condition({"kind": "any_of", "conditions": ["windows", "other"]})
        assert conditions.evaluate(cond, _snapshot("win32")) is True
        assert conditions.evaluate(cond, _snapshot("plan9")) is True
        assert conditions.evaluate(cond, _snapshot("linux")) is False

    def test_all_of(self) -> None:
        """all_of holds only when every inner condition holds."""
        cond = conditions.parse_condition({
            "kind": "all_of",
            "conditions": [
                "unix",
                {"kind": "host_os_matches", "pattern": "^darwin"},
            ],
        })
        assert conditions.evaluate(cond, _snapshot("darwin")) is True
        assert conditions.evaluate(cond, _snapshot("linux")) is False

    def test_evaluation_is_repeatable(self) -> None:
        """Evaluating twice gives the same answer."""
        cond = conditions.windows()
        snapshot = _snapshot("win32")
        assert conditions.evaluate(cond, snapshot) == conditions.evaluate(cond, snapshot)


class TestParseCondition:
    """Tests for parse_condition()."""

    def test_mapping(self) -> None:
        """Mappings with a kind build the matching variant."""
        cond = conditions.parse_condition({"kind": "os_family", "family": "unix"})
        assert isinstance(cond, conditions.OsFamilyCondition)
        assert cond.family is environment.OsFamily.UNIX

    def test_family_shorthand(self) -> None:
        """OS family names are shorthand for os_family conditions."""
        cond = conditions.parse_condition("windows")
        assert cond == conditions.windows()

    def test_always_shorthand(self) -> None:
        """'always' needs no mapping."""
        assert isinstance(conditions.parse_condition("always"), conditions.AlwaysCondition)

    def test_existing_condition_returned(self) -> None:
        """Already-built conditions pass straight through."""
        cond = conditions.windows()
        assert conditions.parse_condition(cond) is cond

    def test_conditions_are_hashable(self) -> None:
        """Conditions are immutable values."""
        first = conditions.parse_condition({"kind": "any_of", "conditions": ["windows", "other"]})
        second = conditions.parse_condition({"kind": "any_of", "conditions": ["windows", "other"]})
        assert hash(first) == hash(second)
        assert first == second

    def test_unknown_kind(self) -> None:
        """Unknown kinds are configuration errors."""
        with _pytest.raises(errors.ConfigurationError, match="Unknown condition kind"):
            conditions.parse_condition({"kind": "ruby_engine", "name": "jruby"})

    def test_missing_kind(self) -> None:
        """Mappings without a kind are rejected."""
        with _pytest.raises(errors.ConfigurationError, match="missing 'kind'"):
            conditions.parse_condition({"family": "windows"})

    def test_unknown_shorthand(self) -> None:
        """Unknown strings are rejected."""
        with _pytest.raises(errors.ConfigurationError, match="Unknown condition"):
            conditions.parse_condition("solaris")

    def test_invalid_family(self) -> None:
        """Families outside windows/unix/other are rejected."""
        with _pytest.raises(errors.ConfigurationError):
            conditions.parse_condition({"kind": "os_family", "family": "beos"})

    def test_invalid_regex(self) -> None:
        """Regexes are compiled when the condition is built."""
        with _pytest.raises(errors.ConfigurationError, match="invalid regex"):
            conditions.host_os_matches("mswin(")

    def test_empty_regex(self) -> None:
        """An empty pattern is rejected."""
        with _pytest.raises(errors.ConfigurationError):
            conditions.host_os_matches("")

    def test_extra_fields(self) -> None:
        """Unexpected fields are rejected."""
        with _pytest.raises(errors.ConfigurationError):
            conditions.parse_condition({"kind": "always", "family": "windows"})

    def test_empty_any_of(self) -> None:
        """Combinators need at least one inner condition."""
        with _pytest.raises(errors.ConfigurationError):
            conditions.parse_condition({"kind": "any_of", "conditions": []})

    def test_any_of_requires_list(self) -> None:
        """Combinators reject non-list conditions."""
        with _pytest.raises(errors.ConfigurationError, match="expects a list"):
            conditions.parse_condition({"kind": "any_of", "conditions": "windows"})

    def test_nested_errors_surface(self) -> None:
        """Errors inside combinators are reported too."""
        with _pytest.raises(errors.ConfigurationError, match="Unknown condition kind"):
            conditions.parse_condition({"kind": "not", "condition": {"kind": "bogus"}})

    def test_wrong_type(self) -> None:
        """Only strings and mappings are accepted."""
        with _pytest.raises(errors.ConfigurationError, match="string or mapping"):
            conditions.parse_condition(42)


class TestDescribe:
    """Tests for condition rendering."""

    def test_describe(self) -> None:
        """describe() gives a short readable form."""
        assert conditions.always().describe() == "always"
        assert conditions.windows().describe() == "os_family=windows"
        assert conditions.host_os_matches("mswin|mingw").describe() == "host_os =~ /mswin|mingw/"
        negated = conditions.parse_condition({"kind": "not", "condition": "unix"})
        assert negated.describe() == "not (os_family=unix)"


class TestConditionBase:
    """Tests for the shared condition base."""

    def test_base_is_abstract(self) -> None:
        """The base class cannot be instantiated without evaluate()."""
        with _pytest.raises(TypeError):
            conditions._ConditionBase()  # type: ignore[abstract]

    def test_variants_are_concrete(self) -> None:
        """Every registered variant implements evaluate()."""
        snapshot = environment.EnvironmentSnapshot.capture(host_os="linux")
        assert conditions.always().evaluate(snapshot) is True
