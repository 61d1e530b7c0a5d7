"""
Portfolio app for the Empire Command Center.

This app links owners, properties, units, tenants and leases fetched from the
portfolio backend API, enforces value contracts on required fields, and
renders card and list view-models for the browser console.
"""
