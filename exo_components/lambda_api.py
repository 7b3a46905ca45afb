"""Lambda-backed HTTP API assembled from a source tree.

Every ``src/modules/{module}/{function}.{ext}`` file becomes one Lambda and
one ``ANY /{module}/{function}`` route.  All functions share a single code
archive built from the project's distribution directory.
"""

from dataclasses import dataclass
from pathlib import Path

import pulumi
import pulumi_aws.apigatewayv2 as apigw

from exo_components.api import create_api
from exo_components.bundle import build
from exo_components.compute import DeployedFunction, create_lambdas
from exo_components.config import LambdaApiArgs
from exo_components.discovery import discover
from exo_components.iam import create_lambda_role
from exo_components.routes import RouteEntry, default_handler, lambda_name_builder, project


@dataclass(frozen=True)
class LambdaApi:
    """Everything declared for one Lambda API.

    Attributes:
        api: The HTTP API.
        stage: Its auto-deploying stage; ``stage.invoke_url`` is the base URL.
        functions: One deployed Lambda per route.
        routes: The route table the API was built from.
        archive_path: Code archive shared by all functions.

    """

    api: apigw.Api
    stage: apigw.Stage
    functions: list[DeployedFunction]
    routes: tuple[RouteEntry, ...]
    archive_path: Path


def plan_routes(name: str, args: LambdaApiArgs) -> tuple[RouteEntry, ...]:
    """Discover functions under *args.source_dir* and project their routes."""
    functions = discover(args.source_dir, args.source_ext)
    return project(functions, lambda_name_builder(name), default_handler)


def create_lambda_api(
    name: str,
    args: LambdaApiArgs,
    opts: pulumi.ResourceOptions | None = None,
) -> LambdaApi:
    # 1) Determine API shape from source
    routes = plan_routes(name, args)
    if not routes:
        pulumi.log.warn(f"No *.{args.source_ext} functions found under {args.source_dir}")

    # 2) Build and zip the code
    archive_path = build(
        args.source_dir,
        args.build_command,
        args.dist_dir_name,
        pre_build_commands=args.pre_build_commands,
        archive_name=args.archive_name,
        timeout=args.build_timeout,
    )

    # 3) Shared role with logging
    role, logging_attachment = create_lambda_role(name, opts)

    # 4) One function per route, then the API in front of them
    functions = create_lambdas(
        args, routes, archive_path, role,
        depends_on=[logging_attachment], opts=opts,
    )
    api, stage = create_api(name, functions, opts)

    return LambdaApi(
        api=api,
        stage=stage,
        functions=functions,
        routes=routes,
        archive_path=archive_path,
    )
