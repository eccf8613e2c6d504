"""
命令行入口點模組

使用方式:
    python -m orgmind --migrate-existing-documents --dry-run
"""

import sys

from orgmind.cli import main

if __name__ == "__main__":
    sys.exit(main())
