"""Freelance Ledger: clients, projects, time, expenses and invoices for freelancers."""

__version__ = "1.0.0"
