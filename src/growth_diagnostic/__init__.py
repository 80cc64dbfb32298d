"""Growth diagnostic service.

Business growth diagnostic: clients answer a 120-question questionnaire across
twelve operational domains, pay for the analysis, and receive prioritised
domain analyses, an executive summary and implementation kits.
"""

__version__ = "0.1.0"
