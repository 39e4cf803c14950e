"""
Service-wide constants
"""

SERVICE_NAME = "risingsun-payroll"
SYSTEM_CREDIT = "Rising Sun Computers"
