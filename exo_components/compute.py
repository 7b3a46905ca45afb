from dataclasses import dataclass
from pathlib import Path

import pulumi
import pulumi_aws as aws

from exo_components.config import LambdaApiArgs
from exo_components.routes import RouteEntry

MODULE_ENV_VAR = "EXOBASE_MODULE"
FUNCTION_ENV_VAR = "EXOBASE_FUNCTION"


@dataclass(frozen=True)
class DeployedFunction:
    route: RouteEntry
    function: aws.lambda_.Function


def function_environment(base: dict[str, str], route: RouteEntry) -> dict[str, str]:
    """Caller variables plus the module/function the handler serves."""
    return {
        **base,
        MODULE_ENV_VAR: route.module,
        FUNCTION_ENV_VAR: route.function,
    }


def create_lambdas(
    args: LambdaApiArgs,
    routes: tuple[RouteEntry, ...],
    archive_path: Path,
    role: aws.iam.Role,
    depends_on: list[pulumi.Resource] | None = None,
    opts: pulumi.ResourceOptions | None = None,
) -> list[DeployedFunction]:
    """
    Create one Lambda per route, all sharing the same code archive.
    Each function is named after its route entry; the provider adds a
    random suffix, which the entry name already leaves room for.
    """
    code = pulumi.FileArchive(str(archive_path))
    env = args.environment
    fn_opts = pulumi.ResourceOptions.merge(
        opts, pulumi.ResourceOptions(depends_on=depends_on or [])
    )

    deployed = []
    for route in routes:
        fn = aws.lambda_.Function(
            route.name,
            code=code,
            role=role.arn,
            handler=route.handler,
            runtime=args.runtime,
            timeout=args.timeout,
            memory_size=args.memory,
            environment=aws.lambda_.FunctionEnvironmentArgs(
                variables=function_environment(env, route),
            ),
            opts=fn_opts,
        )
        deployed.append(DeployedFunction(route=route, function=fn))

    pulumi.log.info(f"Declared {len(deployed)} lambda functions from {archive_path.name}")
    return deployed
