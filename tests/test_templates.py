import unittest

from resume_pilot.ai_processing.templates import (
    ConditionalBlock, bullet_list, is_present, render_optional_blocks
)

class TestOptionalBlocks(unittest.TestCase):

    def test_presence(self):
        self.assertFalse(is_present(None))
        self.assertFalse(is_present("   "))
        self.assertFalse(is_present([]))
        self.assertTrue(is_present("x"))
        self.assertTrue(is_present(0))

    def test_blocks_render_only_when_required_fields_present(self):
        blocks = [
            ConditionalBlock("Phone: {phone}", requires=("phone",)),
            ConditionalBlock("Location: {city}, {state}", requires=("city", "state")),
        ]
        record = {"phone": "555-0100", "city": "Austin", "state": None}

        self.assertEqual(render_optional_blocks(record, blocks), "Phone: 555-0100")

    def test_formatter_is_applied(self):
        blocks = [ConditionalBlock("Skills:\n{skills}", requires=("skills",), formatters={"skills": bullet_list})]
        self.assertEqual(render_optional_blocks({"skills": ["Go", "", "Rust"]}, blocks), "Skills:\n- Go\n- Rust")

    def test_unknown_placeholders_render_empty(self):
        block = ConditionalBlock("Hello {name}{suffix}")
        self.assertEqual(block.render({"name": "Ada"}), "Hello Ada")

    def test_empty_record(self):
        self.assertEqual(render_optional_blocks(None, [ConditionalBlock("x")]), "")
        self.assertEqual(render_optional_blocks({}, [ConditionalBlock("x")]), "")

    def test_custom_separator(self):
        blocks = [ConditionalBlock("{a}", requires=("a",)), ConditionalBlock("{b}", requires=("b",))]
        self.assertEqual(render_optional_blocks({"a": "1", "b": "2"}, blocks, separator=" | "), "1 | 2")

if __name__ == '__main__':
    unittest.main()
