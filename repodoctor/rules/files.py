"""Required project files."""

from datetime import date

from ..models import ProjectContext, Severity
from .base import define_module
from .builders import file_rule

GITIGNORE = """\
# Dependencies
node_modules/

# Build outputs
dist/
.turbo/

# IDE
.idea/
.vscode/

# OS
.DS_Store

# Environment
.env
.env.local

# Logs
*.log

# Coverage
coverage/
"""


def _mit_license(ctx: ProjectContext) -> str:
    author = (ctx.manifest or {}).get("author")
    if not isinstance(author, str) or not author:
        author = "the authors"
    return f"""\
MIT License

Copyright (c) {date.today().year} {author}

Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software"), to deal
in the Software without restriction, including without limitation the rights
to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
copies of the Software, and to permit persons to whom the Software is
furnished to do so, subject to the following conditions:

The above copyright notice and this permission notice shall be included in all
copies or substantial portions of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
SOFTWARE.
"""


MODULE = define_module(
    "files",
    "Files",
    "Required project files",
    [
        file_rule(
            "files/readme",
            "README.md",
            alternatives=("README.rst", "README"),
            hint="Create a README.md to document your project",
        ),
        file_rule(
            "files/license",
            "LICENSE",
            alternatives=("LICENSE.md", "LICENSE.txt"),
            fixable=True,
            fix_content=_mit_license,
        ),
        file_rule("files/gitignore", ".gitignore", fixable=True, fix_content=GITIGNORE),
        file_rule(
            "files/changelog",
            "CHANGELOG.md",
            hint="CHANGELOG.md is created by the release workflow on the first release",
            missing_message="Missing CHANGELOG.md (generated on release)",
            severity=Severity.INFO,
        ),
    ],
)
