"""
taskboard_bulk -- Bulk task mutation with streamed progress.

Applies one field change (status, priority or due date) to every task of a
project that matches a filter, in fixed-size committed batches, and streams
progress events to subscribers of the project's topic.

Architecture:
    taskboard_bulk/ is a top-level package.  Nothing in taskboard_kernel/
    or taskboard_config/ imports from taskboard_bulk.

Invariants:
    BK-1  Total counted once per run
    BK-2  One UPDATE and one commit per batch
    BK-3  Monotonic, capped progress
    BK-4  Exactly one terminal event per run
    BK-5  Clock injection (no datetime.now() calls)
    BK-6  Best-effort publication
    BK-7  Validation at the enqueue boundary
"""
