"""File system helpers and platform disk detection."""