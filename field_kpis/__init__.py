"""
Field Service Technician KPI Package.

Ingests four spreadsheet exports (Opportunities, Sold Line Items, Job Times
and Appointments), reconciles them per technician and computes eight weekly
KPIs per technician.

Subpackages:
    - core: Configuration (pydantic-settings)
    - models: Pydantic schemas and enums
    - services: Parsing, cleaning, integration, validation and KPI logic
    - jobs: The weekly scorecard pipeline
"""

__version__ = "1.0.0"
