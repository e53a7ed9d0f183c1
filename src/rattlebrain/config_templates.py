# src/rattlebrain/config_templates.py
"""Configuration file templates."""

CONFIG_TEMPLATE = """# rattlebrain configuration

[paths]
# Where extracted artifacts, CSV tables, plots and feedback reports land
output_dir = "output"

[extract]
# Registered extraction adapter
adapter = "command"
# Decoder invoked as: <command...> <replay> <output_dir>
# It must write the four <match_id>.*.json artifacts and print the match id
command = ["rattletrap-extract"]
timeout_seconds = 300

[insight]
model = "claude-sonnet-4-5"
max_tokens = 4096
# Environment variable holding the API key
api_key_env = "ANTHROPIC_API_KEY"
# Per-table character budget for CSV context sent with each query
max_table_chars = 20000

[plot]
width_px = 800
height_px = 600
# Half extents of the playing field in replay units (x = side walls, y = goals)
half_x = 300000.0
half_y = 500000.0
# Team ids as they appear in the frame log
team_a = 46
team_b = 50
marker_size = 5.0
title = "Match Visualization"
"""
