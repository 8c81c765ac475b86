"""Top-level package for the household budget engine.

The engine is a set of pure functions over typed snapshots.  The primary
modules are:

* ``periods`` – timezone-correct weekly/fortnightly/monthly boundaries
* ``recurrence`` – projecting recurring expense due dates onto periods
* ``splits`` – shared-expense ownership between partners
* ``summary`` – the full income / budgeted / spent reconciliation
* ``health`` and ``recommendations`` – scoring built on the same figures

To summarise a snapshot file from the command line you can execute:

```bash
python scripts/summarize_snapshot.py path/to/snapshot.json
```
"""

from . import periods  # noqa: F401  # re-exported for convenience
from . import recurrence  # noqa: F401  # re-exported for convenience
from . import splits  # noqa: F401  # re-exported for convenience
from . import summary  # noqa: F401  # re-exported for convenience
from .summary import calculate_budget_summary  # noqa: F401


__all__ = ["periods", "recurrence", "splits", "summary", "calculate_budget_summary"]
