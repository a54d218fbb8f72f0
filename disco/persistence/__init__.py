"""SQLite database, configuration and repositories for disks, entries and tasks."""