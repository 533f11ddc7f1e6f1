"""Centralized constants for dockering to eliminate duplicate strings."""

# SSH Configuration Options
SSH_NO_HOST_CHECK = "StrictHostKeyChecking=no"
SSH_ERROR_LOG_LEVEL = "LogLevel=ERROR"
SSH_BATCH_MODE = "BatchMode=yes"

# Docker output formats
DOCKER_PS_FORMAT = "{{.ID}}|{{.Names}}|{{.Image}}|{{.Status}}|{{.Ports}}"
DOCKER_STATS_FORMAT = "{{.CPUPerc}}|{{.MemUsage}}|{{.MemPerc}}|{{.NetIO}}|{{.BlockIO}}|{{.PIDs}}"
DOCKER_TOP_COLUMNS = "pid,user,%cpu,%mem,comm"
FIELD_DELIMITER = "|"
PLACEHOLDER = "--"

# Script discovery
SCRIPT_NAME_PATTERNS = ("start*.sh", "deploy*.sh", "run*.sh", "docker*.sh")
SCRIPT_EXCLUDED_PATHS = ("*/node_modules/*", "*/.git/*", "*/vendor/*")
SCRIPT_HEREDOC_MARKER = "DOCKERING_SCRIPT_EOF"
DOCKER_MARKER = "docker"

# Env var keys that are masked on display
SECRET_KEY_MARKERS = ("PASSWORD", "SECRET", "TOKEN", "KEY", "CREDENTIAL", "PRIVATE")
SECRET_MASK = "••••••••••••"

# Generated scripts
SCRIPT_SHEBANG = "#! /usr/bin/env bash"
DEFAULT_RESTART_POLICY = "unless-stopped"
CONTINUATION_INDENT = "  "

# Privilege elevation
PRIVILEGE_PREFIX = "sudo -i"

# Environment Variables
ENV_HOSTS_CONFIG = "DOCKERING_HOSTS_CONFIG"
