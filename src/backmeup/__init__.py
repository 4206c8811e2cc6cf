"""backmeup: mirror configured directories into a backup location."""
