"""
Last-writer-wins sync between two replicas of a Todo collection

Keeps a local sandbox replica and a deployed replica consistent by comparing
per-record ``updatedAt`` timestamps and copying the newer version across.

Components:
- reconciler: diff, apply and run(mode)
- accessors: in-memory, JSON file and GraphQL replicas
- report: sync report generation and formatting
- scheduler: periodic sync jobs

Usage:
    from todosync.accessors import GraphQLAccessor, JsonFileAccessor
    from todosync.reconciler import Reconciler

    reconciler = Reconciler(local, deployed)
    report = await reconciler.run("two-way")
"""

__version__ = "1.0.0"
__all__ = ["accessors", "diff", "reconciler", "report", "scheduler", "export"]
