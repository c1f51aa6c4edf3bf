"""
Playwright-facing helpers: locators, resolution, evasion, human simulation,
block handling and the browser session lifecycle.

Import from the submodules directly; `checker.selectors` depends on
`checker.browser.locators`, so this package must not import the modules
that depend on `checker.selectors`.
"""
