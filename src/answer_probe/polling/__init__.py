"""Poll session orchestration.

Sub-modules:
- ``models``     — attempt records and the poll session
- ``controller`` — the sequential fetch/extract/validate loop
- ``result``     — result record assembly
"""
