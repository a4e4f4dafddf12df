"""
Main entry point for ResumePilot.

Checks that the system components are configured and working before the
Streamlit UI is started.
"""

import asyncio
import sys

from resume_pilot.ai_processing import get_llm_manager
from resume_pilot.config import DatabaseManager, get_user_config, validate_config
from resume_pilot.document_manager import DocxExporter
from resume_pilot.email_composer import get_mailer
from resume_pilot.utils import get_workflow_logger

async def test_system_components(check_llm: bool = True) -> bool:
    """Test all system components to ensure they're working correctly."""
    logger = get_workflow_logger()
    logger.info("Starting system component tests")

    # Configuration
    logger.info("Testing configuration system...")
    validation_issues = validate_config()

    if validation_issues["errors"]:
        logger.warning(f"Configuration errors: {validation_issues['errors']}")
        logger.info("⚠️ Configuration has errors but system can still start")

    if validation_issues["warnings"]:
        logger.warning(f"Configuration warnings: {validation_issues['warnings']}")

    logger.info("✅ Configuration system working")

    # Store
    logger.info("Testing document store...")
    try:
        db = DatabaseManager()
        user_id = get_user_config().default_user_id
        stats = db.get_stats(user_id)
        logger.info(f"Store initialized with stats for {user_id}: {stats}")
        logger.info("✅ Document store working")
    except Exception as e:
        logger.error(f"❌ Document store failed: {e}")
        return False

    # Document export
    logger.info("Testing document export...")
    try:
        payload = DocxExporter().to_base64("<h1>Test</h1><p>Export <strong>check</strong></p>")
        logger.info(f"Exported test document ({len(payload)} base64 characters)")
        logger.info("✅ Document export working")
    except Exception as e:
        logger.error(f"❌ Document export failed: {e}")
        return False

    # Mail relay
    mailer = get_mailer()
    if mailer.is_configured:
        logger.info("✅ Mail relay configured")
    else:
        logger.warning(f"⚠️ Mail relay not configured: {', '.join(mailer.missing)}")

    # LLM manager
    logger.info("Testing LLM system...")
    try:
        llm_manager = get_llm_manager()
        providers = llm_manager.get_available_providers()
        logger.info(f"Available LLM providers: {providers}")
        logger.info(f"Provider info: {llm_manager.get_provider_info()}")

        if providers and check_llm:
            test_results = await llm_manager.test_providers()
            logger.info(f"LLM test results: {test_results}")
            logger.info("✅ LLM system working")
        elif not providers:
            logger.warning("⚠️ No LLM providers available - check configuration")
    except Exception as e:
        logger.error(f"❌ LLM system failed: {e}")
        return False

    logger.info("🎉 All system components tested successfully!")
    return True

async def main() -> int:
    """Main application entry point."""
    logger = get_workflow_logger()
    logger.info("Starting ResumePilot component check")

    check_llm = "--skip-llm" not in sys.argv[1:]
    if await test_system_components(check_llm=check_llm):
        logger.info("System is ready for use!")
        logger.info("\n" + "=" * 50)
        logger.info("NEXT STEPS:")
        logger.info("1. Configure your .env file with API keys and mail settings")
        logger.info("2. Run the UI: streamlit run resume_pilot/ui/app.py")
        logger.info("=" * 50)
        return 0

    logger.error("System component tests failed. Please check configuration.")
    return 1

def run() -> None:
    """Console script entry point."""
    sys.exit(asyncio.run(main()))

if __name__ == "__main__":
    run()
