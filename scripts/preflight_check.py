#!/usr/bin/env python3
import sys
import os

print("Running preflight import check...")
try:
    # Dummy env so settings load without a real deployment
    os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")

    import sentinel.main
    print("Import sentinel.main: OK")

    import sentinel.queue.jobs
    print("Import sentinel.queue.jobs: OK")

    from sentinel.llm.prompting import load_prompt
    load_prompt("analyzer_system.txt")
    load_prompt("assistant_system.txt")
    print("Prompt files: OK")

    print("Preflight check passed.")
    sys.exit(0)
except Exception as e:
    print(f"Preflight check FAILED: {e}")
    import traceback
    traceback.print_exc()
    sys.exit(1)
