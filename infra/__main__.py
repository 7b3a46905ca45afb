# infra/__main__.py

import pulumi

from exo_components.codebuild import create_code_build_project
from exo_components.config import (
    load_code_build_args,
    load_lambda_api_args,
    load_static_website_args,
)
from exo_components.lambda_api import create_lambda_api
from exo_components.web import create_static_website

config = pulumi.Config("exo")
component = config.require("component")
name = config.get("name") or pulumi.get_stack()

# ---------------------------------------------------------------------------
# 1) LAMBDA API: one function + route per src/modules/{module}/{function}
# ---------------------------------------------------------------------------
if component == "lambda-api":
    lambda_api = create_lambda_api(name, load_lambda_api_args(config))
    pulumi.export("api_url", lambda_api.stage.invoke_url)
    pulumi.export("routes", [f"{r.method} {r.path}" for r in lambda_api.routes])

# ---------------------------------------------------------------------------
# 2) BUILD PROJECT: source uploaded to S3, built remotely
# ---------------------------------------------------------------------------
elif component == "code-build":
    build_project = create_code_build_project(name, load_code_build_args(config))
    pulumi.export("project_name", build_project.project.name)
    pulumi.export("source_bucket", build_project.bucket.id)

# ---------------------------------------------------------------------------
# 3) STATIC WEBSITE: built locally, served from S3 behind CloudFront
# ---------------------------------------------------------------------------
elif component == "static-website":
    site = create_static_website(name, load_static_website_args(config))
    pulumi.export("website_url", site.bucket.website_endpoint)
    pulumi.export("cdn_url", site.cdn.domain_name)

else:
    raise pulumi.RunError(
        f"Unknown exo:component {component!r}; "
        "expected lambda-api, code-build or static-website"
    )
