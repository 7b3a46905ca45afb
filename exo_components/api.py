import pulumi
import pulumi_aws as aws
import pulumi_aws.apigatewayv2 as apigw

from exo_components.compute import DeployedFunction
from exo_components.routes import dash_case

STAGE_NAME = "api"


def route_key(method: str, path: str) -> str:
    return f"{method} {path}"


def create_api(
    name: str,
    deployed: list[DeployedFunction],
    opts: pulumi.ResourceOptions | None = None,
) -> tuple[apigw.Api, apigw.Stage]:
    # 1) Define the HTTP API
    api = apigw.Api(
        dash_case(f"{name}-api"),
        protocol_type="HTTP",
        opts=opts,
    )

    for item in deployed:
        route, fn = item.route, item.function
        slug = dash_case(f"{name}-{route.module}-{route.function}")

        # 2) Lambda proxy integration for this function
        integration = apigw.Integration(
            f"{slug}-integration",
            api_id=api.id,
            integration_type="AWS_PROXY",
            integration_uri=fn.invoke_arn,
            integration_method="POST",
            payload_format_version="2.0",
            opts=opts,
        )

        # 3) ANY /{module}/{function}
        apigw.Route(
            f"{slug}-route",
            api_id=api.id,
            route_key=route_key(route.method, route.path),
            target=integration.id.apply(lambda iid: f"integrations/{iid}"),
            opts=opts,
        )

        # 4) Give API Gateway permission to invoke the function
        aws.lambda_.Permission(
            f"{slug}-permission",
            action="lambda:InvokeFunction",
            function=fn.name,
            principal="apigateway.amazonaws.com",
            source_arn=api.execution_arn.apply(lambda arn: f"{arn}/*/*"),
            opts=opts,
        )

    # 5) Deploy the stage with auto-deploy on each change
    stage = apigw.Stage(
        dash_case(f"{name}-api-stage"),
        api_id=api.id,
        name=STAGE_NAME,
        auto_deploy=True,
        opts=opts,
    )

    return api, stage
