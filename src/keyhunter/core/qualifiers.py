"""
Search qualifiers used to split one query into many.

GitHub code search returns at most 1000 results per query and has no date
filter, so a query is re-issued once per file type / file name / path
qualifier and the results are merged.
"""

from typing import List

EXTENSION_QUALIFIERS: List[str] = [
    # Config files
    "extension:env",
    "extension:txt",
    "extension:cfg",
    "extension:conf",
    "extension:config",
    "extension:ini",
    "extension:toml",
    "extension:yaml",
    "extension:yml",
    "extension:json",
    "extension:xml",
    # Dotenv and friends
    "filename:.env",
    "filename:env.txt",
    "filename:.env.local",
    "filename:.env.development",
    "filename:.env.production",
    "filename:config",
    # Languages
    "extension:py",
    "extension:js",
    "extension:ts",
    "extension:jsx",
    "extension:tsx",
    "extension:rb",
    "extension:go",
    "extension:java",
    "extension:kt",
    "extension:swift",
    "extension:rs",
    "extension:php",
    "extension:cs",
    "extension:cpp",
    "extension:c",
    "extension:h",
    "extension:m",
    "extension:sh",
    "extension:bash",
    "extension:zsh",
    "extension:pl",
    "extension:r",
    "extension:scala",
    "extension:clj",
    "extension:ex",
    "extension:exs",
    "extension:erl",
    "extension:dart",
    "extension:lua",
    "extension:vim",
    # Web
    "extension:html",
    "extension:htm",
    "extension:vue",
    "extension:svelte",
    # Docs
    "extension:md",
    "extension:rst",
    "extension:adoc",
    # Infrastructure
    "extension:dockerfile",
    "filename:Dockerfile",
    "filename:docker-compose.yml",
    "filename:docker-compose.yaml",
    "extension:tf",
    "extension:tfvars",
    "extension:hcl",
    # CI
    "filename:.gitlab-ci.yml",
    "filename:.travis.yml",
    "filename:circle.yml",
    "filename:azure-pipelines.yml",
    "path:.github/workflows",
    # Package manifests
    "filename:package.json",
    "filename:composer.json",
    "filename:Gemfile",
    "filename:Cargo.toml",
    "filename:go.mod",
    "filename:pom.xml",
    "filename:build.gradle",
    "filename:requirements.txt",
    # Other
    "extension:ipynb",
    "extension:log",
    "extension:properties",
]


def expand_query(query: str, qualifiers: List[str] = EXTENSION_QUALIFIERS) -> List[str]:
    """Build one sub-query per qualifier, in catalog order"""
    return [f"{query} {qualifier}" for qualifier in qualifiers]
