"""DashVisuals API: spreadsheet upload and dashboard aggregation backend."""
