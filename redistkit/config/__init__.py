# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Configuration loading for redistkit.

Manifests are YAML files layered over optional defaults:

  - Organization-wide defaults (defaults/org.yaml)
  - Publisher defaults (defaults/publishers/<Publisher>.yaml)
  - The manifest itself (manifests/<Publisher>/<name>.yaml)

Dicts are merged recursively and lists/scalars are replaced (last wins).

Example:
    from pathlib import Path
    from redistkit.config import load_effective_config

    config = load_effective_config(Path("manifests/Microsoft/vcredist.yaml"))
    for entry in config["redistributables"]:
        print(entry["id"])

"""

from .loader import load_effective_config

__all__ = ["load_effective_config"]
