"""flagmatrix: feature-combination regression harness.

Runs a build/check command once per combination of optional feature flags
(independent toggles crossed with mutually exclusive alternative groups)
and stops at the first combination that fails to build.
"""

__version__ = "0.1.0"
