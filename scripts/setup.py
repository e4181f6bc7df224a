#!/usr/bin/env python3
"""
Setup script for html2design.
Installs the package and the Chromium browser Playwright drives.
"""

import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent


def run_command(cmd, description):
    """Run a command and report status."""
    print(f"\n📦 {description}...")
    try:
        result = subprocess.run(cmd, shell=True, check=True, capture_output=True, text=True, cwd=ROOT)
        print(f"✅ {description} completed")
        if result.stdout:
            print(result.stdout)
        return True
    except subprocess.CalledProcessError as e:
        print(f"❌ {description} failed")
        if e.stderr:
            print(e.stderr)
        return False


def main():
    print("🚀 Setting up html2design...")

    if sys.version_info < (3, 8):
        print("❌ Python 3.8+ required")
        sys.exit(1)

    with_tests = "--test" in sys.argv[1:]
    target = ".[test]" if with_tests else "."
    if not run_command(
        f'{sys.executable} -m pip install -e "{target}"',
        "Installing html2design" + (" with test extras" if with_tests else "")
    ):
        sys.exit(1)

    if not run_command(
        f"{sys.executable} -m playwright install chromium",
        "Installing Chromium browser"
    ):
        sys.exit(1)

    print("\n✅ Setup complete! You can now run:")
    print("   html2design https://example.com --output design.json")
    print("   html2design page.html --css styles.css --viewport mobile")


if __name__ == "__main__":
    main()
