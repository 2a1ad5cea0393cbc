"""
Rendering Module
===============

Template rendering, document assembly and PDF/HTML extraction with browser automation.

Components:
- template_engine: Jinja2 rendering of caller supplied layouts
- assembler: Complete HTML document assembly with dependency injection
- dependencies: Reachability checks for external CSS/script dependencies
- browser_manager: Shared Chromium process lifecycle
- session: One browser tab per render request
- orchestrator: End-to-end render pipeline
"""
