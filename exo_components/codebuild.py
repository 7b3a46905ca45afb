"""Remote build project fed from a zip of the local source tree.

The source directory is zipped together with a ``buildspec.yml`` rendered
from the configured build command, uploaded to a private bucket, and used as
the S3 source of a CodeBuild project.
"""

from dataclasses import dataclass

import pulumi
import pulumi_aws as aws

from exo_components.bundle import build_source_archive, default_buildspec_template, render_buildspec
from exo_components.config import CodeBuildArgs
from exo_components.iam import create_codebuild_role
from exo_components.routes import dash_case
from exo_components.storage import SOURCE_KEY, create_source_bucket

BUILDSPEC_NAME = "buildspec.yml"
LOG_GROUP = "log-group"


@dataclass(frozen=True)
class CodeBuildProject:
    project: aws.codebuild.Project
    bucket: aws.s3.Bucket


def create_code_build_project(
    name: str,
    args: CodeBuildArgs,
    opts: pulumi.ResourceOptions | None = None,
    buildspec_template: str | None = None,
) -> CodeBuildProject:
    # 1) Zip the source along with its buildspec
    template = buildspec_template or default_buildspec_template()
    archive_path = build_source_archive(
        args.source_dir,
        archive_name=SOURCE_KEY,
        extra_files={BUILDSPEC_NAME: render_buildspec(template, args.build_command)},
    )

    # 2) Bucket holding the source
    bucket, _ = create_source_bucket(name, archive_path, opts)

    # 3) Role/policy
    role, _ = create_codebuild_role(name, bucket, opts)

    # 4) The project itself
    project = aws.codebuild.Project(
        dash_case(name),
        build_timeout=args.build_timeout_minutes,
        service_role=role.arn,
        artifacts=aws.codebuild.ProjectArtifactsArgs(type="NO_ARTIFACTS"),
        environment=aws.codebuild.ProjectEnvironmentArgs(
            compute_type="BUILD_GENERAL1_SMALL",
            image=args.image,
            type="LINUX_CONTAINER",
            image_pull_credentials_type="CODEBUILD",
            environment_variables=[
                aws.codebuild.ProjectEnvironmentEnvironmentVariableArgs(
                    name=var.name,
                    value=var.value,
                )
                for var in args.environment_variables
            ],
        ),
        logs_config=aws.codebuild.ProjectLogsConfigArgs(
            cloudwatch_logs=aws.codebuild.ProjectLogsConfigCloudwatchLogsArgs(
                group_name=LOG_GROUP,
                stream_name=dash_case(name),
            ),
        ),
        source=aws.codebuild.ProjectSourceArgs(
            type="S3",
            location=pulumi.Output.concat(bucket.bucket, "/", SOURCE_KEY),
        ),
        opts=opts,
    )

    return CodeBuildProject(project=project, bucket=bucket)
