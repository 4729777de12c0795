"""Core adb modules: tasks, IDs, backlog, context, bootstrap, worktrees, config."""
