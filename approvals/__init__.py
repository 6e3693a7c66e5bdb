"""Approval workflow core: location hierarchy, approver resolution, delegation authority, workflow engine."""
