import re
import unittest

from caprover_oneclick.errors import InvalidPatternError, InvalidValueError, VariableRequiredError
from caprover_oneclick.models import VariableDefinition
from caprover_oneclick.substitute import substitute
from caprover_oneclick.variables import (
    Pattern,
    Unconstrained,
    expand_default,
    generate_random_hex,
    parse_valid_regex,
    resolve_variables,
)


def port_definition(**kwargs) -> VariableDefinition:
    data = {"id": "$$port", "label": "Port", "defaultValue": "8080", "validRegex": "/^[0-9]+$/"}
    data.update(kwargs)
    return VariableDefinition.model_validate(data)


class PatternParsingTests(unittest.TestCase):
    def test_delimited_literal_is_stripped(self):
        pattern = parse_valid_regex("/^[0-9]+$/")
        self.assertIsInstance(pattern, Pattern)
        self.assertEqual(pattern.source, "^[0-9]+$")
        self.assertTrue(pattern.matches("8080"))
        self.assertFalse(pattern.matches("abc"))

    def test_flags_are_parsed_but_not_applied(self):
        pattern = parse_valid_regex("/^abc$/i")
        self.assertEqual(pattern.flags, "i")
        self.assertFalse(pattern.matches("ABC"))

    def test_bare_pattern_is_used_as_is(self):
        pattern = parse_valid_regex("^v[0-9]+")
        self.assertTrue(pattern.matches("v12"))

    def test_missing_regex_matches_anything(self):
        pattern = parse_valid_regex(None)
        self.assertIsInstance(pattern, Unconstrained)
        self.assertTrue(pattern.matches(""))

    def test_empty_regex_is_fatal(self):
        with self.assertRaises(InvalidPatternError):
            parse_valid_regex("", "$$x")

    def test_uncompilable_regex_is_fatal(self):
        with self.assertRaises(InvalidPatternError) as ctx:
            parse_valid_regex("/([a-z/", "$$x")
        self.assertEqual(ctx.exception.variable_id, "$$x")


class RandomHexTests(unittest.TestCase):
    def test_length_and_alphabet(self):
        for count in (1, 12, 32):
            value = generate_random_hex(count)
            self.assertEqual(len(value), 2 * count)
            self.assertRegex(value, r"^[0-9a-f]+$")

    def test_values_are_not_replayed(self):
        self.assertNotEqual(generate_random_hex(16), generate_random_hex(16))

    def test_directive_default_is_expanded(self):
        self.assertEqual(expand_default("$$cap_gen_random_hex(4)", lambda n: "x" * n), "xxxx")
        self.assertEqual(expand_default("plain", lambda n: "x" * n), "plain")


class ResolveVariablesTests(unittest.TestCase):
    def test_default_used_when_value_missing(self):
        resolved = resolve_variables([port_definition()], {})
        self.assertEqual(resolved["$$port"], "8080")

    def test_invalid_value_is_rejected(self):
        with self.assertRaises(InvalidValueError) as ctx:
            resolve_variables([port_definition()], {"$$port": "abc"})
        self.assertEqual(ctx.exception.variable_id, "$$port")

    def test_valid_value_wins_over_default(self):
        resolved = resolve_variables([port_definition()], {"$$port": "9000"})
        self.assertEqual(resolved["$$port"], "9000")

    def test_missing_value_and_default_is_required(self):
        with self.assertRaises(VariableRequiredError):
            resolve_variables([port_definition(defaultValue="")], {})

    def test_bad_default_without_value_is_required(self):
        with self.assertRaises(VariableRequiredError):
            resolve_variables([port_definition(defaultValue="latest")], {})

    def test_empty_value_counts_as_missing(self):
        resolved = resolve_variables([port_definition()], {"$$port": ""})
        self.assertEqual(resolved["$$port"], "8080")

    def test_invalid_pattern_fails_even_with_valid_value(self):
        with self.assertRaises(InvalidPatternError):
            resolve_variables([port_definition(validRegex="")], {"$$port": "80"})

    def test_non_string_defaults_are_coerced(self):
        definition = VariableDefinition.model_validate({"id": "$$flag", "defaultValue": True})
        self.assertEqual(resolve_variables([definition], {})["$$flag"], "true")

    def test_random_default_uses_generator(self):
        definition = VariableDefinition.model_validate(
            {"id": "$$secret", "defaultValue": "$$cap_gen_random_hex(8)", "validRegex": "/.{16}/"}
        )
        resolved = resolve_variables([definition], {})
        self.assertTrue(re.fullmatch(r"[0-9a-f]{16}", resolved["$$secret"]))

    def test_resolution_is_repeatable_with_pinned_randomness(self):
        definitions = [
            port_definition(),
            VariableDefinition.model_validate({"id": "$$token", "defaultValue": "$$cap_gen_random_hex(4)"}),
        ]
        pinned = lambda n: "ab" * n  # noqa: E731
        first = resolve_variables(definitions, {"$$port": "81"}, {"$$cap_appname": "demo"}, random_hex=pinned)
        second = resolve_variables(definitions, {"$$port": "81"}, {"$$cap_appname": "demo"}, random_hex=pinned)
        self.assertEqual(list(first.items()), list(second.items()))

    def test_order_is_definitions_then_extras_then_seeds(self):
        resolved = resolve_variables(
            [port_definition()],
            {"$$extra": "x", "$$cap_appname": "ignored"},
            {"$$cap_appname": "demo", "$$cap_root_domain": "example.com"},
        )
        self.assertEqual(list(resolved), ["$$port", "$$extra", "$$cap_appname", "$$cap_root_domain"])
        self.assertEqual(resolved["$$cap_appname"], "demo")

    def test_result_is_read_only(self):
        resolved = resolve_variables([port_definition()], {})
        with self.assertRaises(TypeError):
            resolved["$$port"] = "1"  # type: ignore[index]


class FakePrompt:
    def __init__(self, answer):
        self.answer = answer
        self.asked = []

    def ask(self, variable_id, label, description, validator, default):
        self.asked.append((variable_id, default, validator(self.answer or "")))
        return self.answer


class InteractiveResolveTests(unittest.TestCase):
    def test_prompt_supplies_missing_value(self):
        prompt = FakePrompt("9090")
        resolved = resolve_variables([port_definition()], {}, prompt=prompt)
        self.assertEqual(resolved["$$port"], "9090")
        self.assertEqual(prompt.asked, [("$$port", "8080", True)])

    def test_prompt_skipped_when_value_and_default_valid(self):
        prompt = FakePrompt("1")
        resolve_variables([port_definition()], {"$$port": "81"}, prompt=prompt)
        self.assertEqual(prompt.asked, [])

    def test_prompt_answer_is_still_validated(self):
        with self.assertRaises(InvalidValueError):
            resolve_variables([port_definition()], {}, prompt=FakePrompt("nope"))


class SubstituteTests(unittest.TestCase):
    def test_replaces_every_occurrence(self):
        text = "a: $$name\nb: $$name-db\n"
        self.assertEqual(substitute(text, {"$$name": "demo"}), "a: demo\nb: demo-db\n")

    def test_later_pairs_apply_to_earlier_values(self):
        variables = {"$$host": "srv-$$cap_appname", "$$cap_appname": "demo"}
        self.assertEqual(substitute("host: $$host", variables), "host: srv-demo")

    def test_substitution_is_idempotent(self):
        variables = {"$$a": "one", "$$b": "two"}
        once = substitute("$$a $$b $$a", variables)
        self.assertEqual(substitute(once, variables), once)


if __name__ == "__main__":
    unittest.main()
