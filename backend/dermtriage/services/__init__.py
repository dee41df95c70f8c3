"""Domain services: lifecycle, grouping, case feed and the hosted-model client."""
