import unittest

from domain.amounts import format_cooldown, parse_amount, parse_bank_amount
from domain.exceptions import ValidationError
from domain.models import ALL, All, Exact


class ParseAmountTests(unittest.TestCase):
    def test_accepts_ints_strings_and_integral_floats(self):
        self.assertEqual(parse_amount(0), 0)
        self.assertEqual(parse_amount(42), 42)
        self.assertEqual(parse_amount(" 17 "), 17)
        self.assertEqual(parse_amount(3.0), 3)

    def test_rejects_garbage(self):
        for bad in (None, "", "12abc", 2.5, float("nan"), True, [], {}):
            with self.assertRaises(ValidationError, msg=repr(bad)):
                parse_amount(bad)

    def test_rejects_negative_with_field_name(self):
        with self.assertRaises(ValidationError) as ctx:
            parse_amount(-4, field="capacity")
        self.assertIn("capacity", str(ctx.exception))

    def test_validation_error_is_a_value_error(self):
        with self.assertRaises(ValueError):
            parse_amount("x")


class ParseBankAmountTests(unittest.TestCase):
    def test_all_token(self):
        self.assertIs(parse_bank_amount("all"), ALL)
        self.assertIs(parse_bank_amount(" ALL "), ALL)
        self.assertIs(All(), ALL)

    def test_numeric_values_become_exact(self):
        self.assertEqual(parse_bank_amount(50), Exact(50))
        self.assertEqual(parse_bank_amount("50"), Exact(50))

    def test_tagged_values_pass_through(self):
        self.assertEqual(parse_bank_amount(Exact(9)), Exact(9))
        self.assertIs(parse_bank_amount(ALL), ALL)

    def test_rejects_invalid_values(self):
        for bad in ("everything", -1, Exact(-1), None, Exact(2.5), Exact("5"), Exact(True)):
            with self.assertRaises(ValidationError, msg=repr(bad)):
                parse_bank_amount(bad)


class FormatCooldownTests(unittest.TestCase):
    def test_floor_division_into_components(self):
        cooldown = format_cooldown(86_399_000)
        self.assertEqual((cooldown.hours, cooldown.minutes, cooldown.seconds), (23, 59, 59))
        self.assertEqual(cooldown.formatted, "23 hour(s), 59 minute(s), 59 second(s)")

    def test_partial_seconds_are_truncated(self):
        cooldown = format_cooldown(61_999)
        self.assertEqual((cooldown.hours, cooldown.minutes, cooldown.seconds), (0, 1, 1))

    def test_zero_components_are_omitted(self):
        self.assertEqual(format_cooldown(3_600_000).formatted, "1 hour(s)")
        self.assertEqual(format_cooldown(3_605_000).formatted, "1 hour(s), 5 second(s)")

    def test_all_zero_falls_back(self):
        self.assertEqual(format_cooldown(0).formatted, "0 seconds")
        self.assertEqual(format_cooldown(999).formatted, "0 seconds")


if __name__ == "__main__":
    unittest.main()
