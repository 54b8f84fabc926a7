"""Resource files and configuration templates."""


def get_default_config() -> str:
    """Return default configuration YAML content."""
    return """# umiaware Configuration File

# Input/output files (can be overridden by CLI arguments)
input_file: ~
output_file: ~
metrics_file: ~

# Runtime settings
runtime:
  log_level: "WARNING"
  log_file: ~

# UMI clustering
umi:
  # Maximum Hamming distance for two UMIs to be joined directly
  edit_distance_to_join: 1
  # Write the most common UMI of each group to inferred_umi_tag
  add_inferred_umi: false
  umi_tag: "RX"
  inferred_umi_tag: "RI"
  # umi-aware | positional
  strategy: "umi-aware"
"""
