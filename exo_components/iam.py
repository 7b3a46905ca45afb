import json

import pulumi
import pulumi_aws as aws

from exo_components.routes import dash_case

LOGS_ACTIONS = [
    "logs:CreateLogGroup",
    "logs:CreateLogStream",
    "logs:PutLogEvents",
]


def assume_role_policy(service: str) -> str:
    return json.dumps({
        "Version": "2012-10-17",
        "Statement": [{
            "Effect": "Allow",
            "Principal": {"Service": service},
            "Action": "sts:AssumeRole",
        }],
    })


def create_lambda_role(name: str, opts: pulumi.ResourceOptions | None = None):
    """
    IAM role shared by every function of a Lambda API, with permission to
    write CloudWatch logs.
    Returns:
      - role: IAM role assumable by Lambda
      - logging_attachment: attach this as a dependency of each function
    """
    # 1) Role the functions run as
    role = aws.iam.Role(
        dash_case(f"{name}-iam-lambda"),
        assume_role_policy=assume_role_policy("lambda.amazonaws.com"),
        opts=opts,
    )

    # 2) Logging policy
    logging_policy = aws.iam.Policy(
        dash_case(f"{name}-lambda-logging"),
        path="/",
        description="IAM policy for logging from a lambda",
        policy=json.dumps({
            "Version": "2012-10-17",
            "Statement": [{
                "Effect": "Allow",
                "Action": LOGS_ACTIONS,
                "Resource": "arn:aws:logs:*:*:*",
            }],
        }),
        opts=opts,
    )

    # 3) Attach it
    logging_attachment = aws.iam.RolePolicyAttachment(
        dash_case(f"{name}-lambda-logs"),
        role=role.name,
        policy_arn=logging_policy.arn,
        opts=opts,
    )

    return role, logging_attachment


def create_codebuild_role(
    name: str,
    bucket: aws.s3.Bucket,
    opts: pulumi.ResourceOptions | None = None,
):
    # 1) Role for the build project
    role = aws.iam.Role(
        dash_case(f"{name}-codebuild"),
        assume_role_policy=assume_role_policy("codebuild.amazonaws.com"),
        opts=opts,
    )

    # 2) Build may write logs and read its source from the bucket
    policy = aws.iam.RolePolicy(
        dash_case(f"{name}-codebuild-policy"),
        role=role.name,
        policy=bucket.arn.apply(
            lambda arn: json.dumps({
                "Version": "2012-10-17",
                "Statement": [
                    {"Effect": "Allow", "Action": LOGS_ACTIONS, "Resource": ["*"]},
                    {"Effect": "Allow", "Action": ["s3:*"], "Resource": [arn, f"{arn}/*"]},
                ],
            })
        ),
        opts=opts,
    )

    return role, policy
