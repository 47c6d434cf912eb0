#!/usr/bin/env python3
"""
LocalEvents - Main entry point

This is a simple launcher that runs the localevents package as a module.
All application code is in the localevents/ directory.
"""

if __name__ == "__main__":
    import runpy

    # Run the localevents package as a module
    runpy.run_module("localevents", run_name="__main__")
