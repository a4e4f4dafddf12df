import unittest
from unittest.mock import AsyncMock, MagicMock

from resume_pilot.ai_processing.contracts import Operation
from resume_pilot.ai_processing.generation import (
    GenerationError, GenerationInvoker, InputValidationError
)
from resume_pilot.ai_processing.llm_manager import LLMResponse

RESUME = "Python developer, 3 years, Flask"
JOB = "Looking for a Senior Python Engineer with Flask and AWS experience"

def make_manager(response):
    manager = MagicMock()
    manager.generate_structured_response = AsyncMock(return_value=response)
    return manager

class TestGenerationInvoker(unittest.IsolatedAsyncioTestCase):

    async def test_returns_validated_output(self):
        manager = make_manager(LLMResponse(success=True, model="test-model", data={
            "compatibility_score": 150,
            "is_right_for_me": True,
            "matched_keywords": ["Python", "AWS"],
            "missing_keywords": ["Flask"],
        }))
        invoker = GenerationInvoker(manager)

        output = await invoker.invoke(Operation.ANALYZE_SUITABILITY, {
            "resume_text": RESUME, "job_description_text": JOB,
        })

        self.assertEqual(output.compatibility_score, 100)
        self.assertEqual(set(output.matched_keywords), {"Python", "Flask"})
        self.assertEqual(output.missing_keywords, ["AWS"])

        kwargs = manager.generate_structured_response.await_args.kwargs
        self.assertIn(RESUME, kwargs["prompt"])
        self.assertIn("compatibility_score", kwargs["response_format"])

    async def test_missing_input_fails_before_calling_service(self):
        manager = make_manager(LLMResponse(success=True, data={}))
        invoker = GenerationInvoker(manager)

        with self.assertRaises(InputValidationError) as ctx:
            await invoker.invoke(Operation.GENERATE_COVER_LETTER, {"resume_text": RESUME, "job_description_text": "  "})

        self.assertIn("job_description_text", ctx.exception.field_errors)
        manager.generate_structured_response.assert_not_awaited()

    async def test_service_failure_raises_generation_error(self):
        invoker = GenerationInvoker(make_manager(LLMResponse(success=False, error="OpenRouter API error 503")))

        with self.assertRaises(GenerationError) as ctx:
            await invoker.invoke(Operation.EXTRACT_JOB_DETAILS, {"job_description_text": JOB})

        self.assertEqual(ctx.exception.operation, Operation.EXTRACT_JOB_DETAILS)
        self.assertIn("503", str(ctx.exception))

    async def test_schema_mismatch_raises_generation_error(self):
        invoker = GenerationInvoker(make_manager(LLMResponse(success=True, data={
            "compatibility_score": "very good",
            "is_right_for_me": True,
            "matched_keywords": [],
            "missing_keywords": [],
        })))

        with self.assertRaises(GenerationError):
            await invoker.invoke(Operation.ANALYZE_SUITABILITY, {"resume_text": RESUME, "job_description_text": JOB})

    async def test_numeric_string_score_stays_in_range(self):
        invoker = GenerationInvoker(make_manager(LLMResponse(success=True, data={
            "compatibility_score": "150",
            "is_right_for_me": True,
            "matched_keywords": [],
            "missing_keywords": [],
        })))

        output = await invoker.invoke(Operation.ANALYZE_SUITABILITY, {"resume_text": RESUME, "job_description_text": JOB})

        self.assertEqual(output.compatibility_score, 100)

    async def test_non_finite_score_raises_generation_error(self):
        for score in (float("inf"), float("nan")):
            invoker = GenerationInvoker(make_manager(LLMResponse(success=True, data={
                "compatibility_score": score,
                "is_right_for_me": False,
                "matched_keywords": [],
                "missing_keywords": [],
            })))

            with self.assertRaises(GenerationError):
                await invoker.invoke(Operation.ANALYZE_SUITABILITY, {
                    "resume_text": RESUME, "job_description_text": JOB,
                })

    async def test_missing_output_field_raises_generation_error(self):
        invoker = GenerationInvoker(make_manager(LLMResponse(success=True, data={"html": "<p>Hi</p>"})))

        with self.assertRaises(GenerationError):
            await invoker.invoke(Operation.GENERATE_COVER_LETTER, {"resume_text": RESUME, "job_description_text": JOB})

    async def test_no_structured_data_raises_generation_error(self):
        invoker = GenerationInvoker(make_manager(LLMResponse(success=True, content="ok", data=None)))

        with self.assertRaises(GenerationError):
            await invoker.invoke(Operation.GENERATE_INTERVIEW_QUESTIONS, {
                "resume_text": RESUME, "job_description_text": JOB,
            })

    async def test_extraction_omits_undiscoverable_company(self):
        invoker = GenerationInvoker(make_manager(LLMResponse(success=True, data={
            "job_title": "Senior Python Engineer",
            "company_name": "Initech",
        })))

        output = await invoker.invoke(Operation.EXTRACT_JOB_DETAILS, {"job_description_text": JOB})

        self.assertEqual(output.job_title, "Senior Python Engineer")
        self.assertIsNone(output.company_name)

    async def test_optimized_resume_has_no_wrapper_tags(self):
        invoker = GenerationInvoker(make_manager(LLMResponse(success=True, data={
            "optimized_resume_html": "<!DOCTYPE html><html><body><h1>Jane</h1><h2>References</h2></body></html>",
        })))

        output = await invoker.invoke(Operation.OPTIMIZE_RESUME, {"resume_text": RESUME, "job_description_text": JOB})

        for tag in ("<html", "<head", "<body"):
            self.assertNotIn(tag, output.optimized_resume_html.lower())
        self.assertIn("<h1>Jane</h1>", output.optimized_resume_html)

if __name__ == '__main__':
    unittest.main()
