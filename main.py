"""Image Optimizer entry point."""

import sys

# Python traceback on hard crashes (SIGSEGV/SIGABRT)
try:
    import faulthandler
    faulthandler.enable(all_threads=True)
except Exception:
    pass

from image_optimizer.app import main

if __name__ == "__main__":
    sys.exit(main())
