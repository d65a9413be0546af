import logging

from batchlog import settings as batch_settings
from batchlog.logger.logger import logging_context


class CommandError(Exception):
    pass


class BatchResult:
    def __init__(self):
        self.processed = 0
        self.failures = []

    @property
    def succeeded(self):
        return self.processed - len(self.failures)

    @property
    def ok(self):
        return not self.failures

    def __repr__(self):
        return (
            f"BatchResult(processed: {self.processed}, failed: {len(self.failures)})"
        )


class BatchCommand:
    """
    Run a piece of work for each entity of a collection.

    An error raised while processing one entity is logged with its stack trace
    at CRITICAL level and processing moves on to the next entity. Subclasses
    implement get_entities and process. Settings are loaded before the first
    entity, so a broken settings file stops the run at the start.
    """

    name = "batch"

    def __init__(self):
        self.logger = logging.getLogger(f"batchlog.commands.{self.name}")

    def get_entities(self):
        raise NotImplementedError

    def process(self, entity):
        raise NotImplementedError

    def describe(self, entity):
        return repr(entity)

    def run(self):
        # settings errors surface here, not from a filter inside the loop
        batch_settings.get_settings()
        result = BatchResult()
        self.logger.info(f"Starting {self.name}")

        for index, entity in enumerate(self.get_entities(), start=1):
            label = self.describe(entity)
            result.processed += 1

            with logging_context(f"{self.name} | {label}", index=index):
                try:
                    self.process(entity)
                except Exception as e:
                    self.logger.critical(
                        f"Failed to process {label}: {e}", exc_info=True
                    )
                    result.failures.append((label, e))
                else:
                    self.logger.debug(f"Processed {label}")

        if result.ok:
            self.logger.info(f"Finished {self.name}, {result.processed} processed")
        else:
            self.logger.error(
                f"Finished {self.name}, {len(result.failures)} of"
                f" {result.processed} failed"
            )

        return result
