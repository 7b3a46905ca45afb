"""Tests for the Pulumi declaration layer, run against engine mocks."""

import json
import os
from pathlib import Path

import pulumi
import pytest


class ExoMocks(pulumi.runtime.Mocks):
    """Echo inputs back as state, filling in the ARNs providers compute.

    State keys use the provider's camelCase property names.
    """

    def new_resource(self, args: pulumi.runtime.MockResourceArgs):
        state = {
            **args.inputs,
            "arn": f"arn:aws:mock:::{args.name}",
            "invokeArn": f"arn:aws:apigateway:mock:lambda:path/{args.name}",
            "executionArn": f"arn:aws:execute-api:mock:{args.name}",
            "websiteEndpoint": f"{args.name}.s3-website.mock",
            "domainName": f"{args.name}.cloudfront.mock",
            "invokeUrl": f"https://{args.name}.execute-api.mock/api",
        }
        if "name" not in state:
            state["name"] = args.name
        if "bucket" not in state:
            state["bucket"] = args.name
        return [f"{args.name}_id", state]

    def call(self, args: pulumi.runtime.MockCallArgs):
        return {}


pulumi.runtime.set_mocks(ExoMocks(), project="exo-components", stack="test", preview=False)

from exo_components.codebuild import create_code_build_project  # noqa: E402
from exo_components.compute import function_environment  # noqa: E402
from exo_components.config import (  # noqa: E402
    CodeBuildArgs,
    EnvironmentVariable,
    LambdaApiArgs,
    StaticWebsiteArgs,
)
from exo_components.iam import assume_role_policy  # noqa: E402
from exo_components.lambda_api import create_lambda_api, plan_routes  # noqa: E402
from exo_components.routes import RouteEntry  # noqa: E402
from exo_components.web import content_type, create_static_website, public_read_policy  # noqa: E402


def _lambda_args(source_tree: Path, **overrides) -> LambdaApiArgs:
    return LambdaApiArgs(
        source_dir=source_tree,
        source_ext="ts",
        runtime="nodejs18.x",
        environment_variables=(EnvironmentVariable("STAGE", "test"),),
        **overrides,
    )


class TestPlanRoutes:
    def test_routes_from_source(self, source_tree: Path) -> None:
        routes = plan_routes("shop", _lambda_args(source_tree))
        by_path = {r.path: r for r in routes}
        assert set(by_path) == {"/users/create", "/users/list", "/orders/get"}
        assert by_path["/users/create"].name == "shop-users-create"
        assert by_path["/users/create"].handler == "modules/users/create.default"


class TestFunctionEnvironment:
    def test_adds_module_and_function(self) -> None:
        route = RouteEntry(
            path="/users/create", method="ANY", handler="h", name="n",
            module="users", function="create",
        )
        env = function_environment({"STAGE": "prod"}, route)
        assert env == {
            "STAGE": "prod",
            "EXOBASE_MODULE": "users",
            "EXOBASE_FUNCTION": "create",
        }


class TestPolicies:
    def test_assume_role_policy(self) -> None:
        doc = json.loads(assume_role_policy("lambda.amazonaws.com"))
        (statement,) = doc["Statement"]
        assert statement["Principal"] == {"Service": "lambda.amazonaws.com"}
        assert statement["Action"] == "sts:AssumeRole"

    def test_public_read_policy(self) -> None:
        doc = json.loads(public_read_policy("my-site"))
        assert doc["Statement"][0]["Resource"] == ["arn:aws:s3:::my-site/*"]

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("index.html", "text/html"),
            ("css/a.css", "text/css"),
            ("blob.unknownext", "application/octet-stream"),
        ],
    )
    def test_content_type(self, path: str, expected: str) -> None:
        assert content_type(path) == expected


class TestLambdaApi:
    """create_lambda_api declares one function and route per source file."""

    @pulumi.runtime.test
    def test_one_function_per_route(self, source_tree: Path):
        lambda_api = create_lambda_api("shop", _lambda_args(source_tree))
        assert len(lambda_api.functions) == 3
        assert lambda_api.archive_path.is_file()

        def check(handlers):
            assert sorted(handlers) == [
                "modules/orders/get.default",
                "modules/users/create.default",
                "modules/users/list.default",
            ]

        return pulumi.Output.all(
            *[d.function.handler for d in lambda_api.functions]
        ).apply(check)

    @pulumi.runtime.test
    def test_runtime_and_limits(self, source_tree: Path):
        lambda_api = create_lambda_api(
            "limits", _lambda_args(source_tree, timeout=30, memory=512),
        )
        fn = lambda_api.functions[0].function

        def check(values):
            runtime, timeout, memory = values
            assert runtime == "nodejs18.x"
            assert timeout == 30
            assert memory == 512

        return pulumi.Output.all(fn.runtime, fn.timeout, fn.memory_size).apply(check)

    @pulumi.runtime.test
    def test_stage(self, source_tree: Path):
        lambda_api = create_lambda_api("staged", _lambda_args(source_tree))

        def check(values):
            name, auto_deploy = values
            assert name == "api"
            assert auto_deploy is True

        return pulumi.Output.all(
            lambda_api.stage.name, lambda_api.stage.auto_deploy,
        ).apply(check)


class TestCodeBuildProject:
    @pulumi.runtime.test
    def test_project(self, site_tree: Path):
        args = CodeBuildArgs(
            source_dir=site_tree,
            build_command="yarn build",
            image="node:16",
            build_timeout_minutes=15,
        )
        built = create_code_build_project("builder", args)
        assert (site_tree / "source.zip").is_file()

        def check(values):
            timeout, bucket_id = values
            assert timeout == 15
            assert bucket_id == "builder-source_id"

        return pulumi.Output.all(
            built.project.build_timeout,
            built.bucket.id,
        ).apply(check)


class TestStaticWebsite:
    @pulumi.runtime.test
    def test_uploads_every_file(self, site_tree: Path):
        site = create_static_website("docs", StaticWebsiteArgs(source_dir=site_tree))
        assert len(site.objects) == 3

        def check(keys):
            assert sorted(keys) == ["404.html", "css/a.css", "index.html"]

        return pulumi.Output.all(*[o.key for o in site.objects]).apply(check)

    def test_missing_distribution(self, tmp_path: Path) -> None:
        from exo_components.errors import NotFoundError

        with pytest.raises(NotFoundError, match="distribution directory"):
            create_static_website("empty", StaticWebsiteArgs(source_dir=tmp_path))

    def test_unreadable_distribution(
        self, site_tree: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        from exo_components.errors import PackagingError

        real_scandir = os.scandir

        def deny_css(path="."):
            if os.path.basename(os.fspath(path)) == "css":
                raise PermissionError(13, "Permission denied", os.fspath(path))
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", deny_css)
        with pytest.raises(PackagingError, match="Cannot list site files"):
            create_static_website("locked", StaticWebsiteArgs(source_dir=site_tree))
