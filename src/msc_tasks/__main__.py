"""msc-tasks entry point.

Supports: python -m msc_tasks
"""

from .app import main

if __name__ == "__main__":
    main()
