"""Supply pipeline for the SPIRE sidecar.

This package contains the pipeline components:

- **resolver**: Parameter resolution (service binding -> environment)
- **installer**: Artifact installation (binaries, plugins, certificates)
- **renderer**: Configuration rendering (Jinja2 templates -> agent.conf / envoy.yaml)
- **launch**: Launch descriptor assembly (launch.yml)
- **supplier**: Pipeline orchestration (stages, fail-fast, auxiliary setup)
- **layout**: Build / buildpack / runtime path resolution
"""
