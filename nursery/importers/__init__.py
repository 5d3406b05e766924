from nursery.importers.base import (
    CancellationToken,
    EventCancellationToken,
    ImportOptions,
    ImportResult,
    ImportService,
    JobCancelled,
    JobStatusCancellationToken,
)
