"""Rising Sun Computers attendance and payroll backend."""
