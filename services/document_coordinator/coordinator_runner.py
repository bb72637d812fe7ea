"""Coordinator runner entry point.

Restores the persisted session against the document manager backend and
prints the current document list. Logs in first if DMS_USERNAME and
DMS_PASSWORD are set and no valid session is stored.

Usage:
    python -m services.document_coordinator.coordinator_runner
"""

import asyncio

from shared.clients.dms.DMSClientManager import DMSClientManager
from services.document_coordinator.DocumentCoordinator import DocumentCoordinator
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging


async def main() -> None:
    """Restore the session and list the documents."""
    logger = setup_logging()
    config = HelperConfig(logger=logger)
    dmsManager = DMSClientManager(helper_config=config)
    dms_client = dmsManager.get_client()

    coordinator = DocumentCoordinator(helper_config=config, dms_client=dms_client)
    try:
        if not await coordinator.start():
            username = config.get_string_val("DMS_USERNAME", default="")
            password = config.get_string_val("DMS_PASSWORD", default="")
            if not username or not await coordinator.login(username, password):
                for message in coordinator.pop_messages():
                    logger.error(message.text)
                logger.error("Not authenticated. Set DMS_USERNAME and DMS_PASSWORD to log in.")
                return

        view = coordinator.get_view()
        logger.info("Logged in as %s, %d documents:", view.user.username, len(view.documents), color="cyan")
        for doc in view.documents:
            attachment = f"{doc.original_filename} ({doc.get_file_size_kb()} KB)" if doc.has_file else "no file"
            logger.info("  #%d %s [%s] %s - %s", doc.id, doc.title, doc.number, doc.date, attachment)
        for message in coordinator.pop_messages():
            logger.warning(message.text)
    finally:
        await coordinator.close()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
