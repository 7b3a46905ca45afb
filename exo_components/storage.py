from pathlib import Path

import pulumi
import pulumi_aws as aws

from exo_components.routes import dash_case

SOURCE_KEY = "source.zip"


def create_source_bucket(
    name: str,
    archive_path: Path,
    opts: pulumi.ResourceOptions | None = None,
):
    """
    Private bucket holding the zipped source of a build project.
    Returns the bucket and the uploaded source object.
    """
    # 1) Private bucket
    bucket = aws.s3.Bucket(
        dash_case(f"{name}-source"),
        acl="private",
        opts=opts,
    )

    # 2) Upload the archive under a fixed key
    source = aws.s3.BucketObject(
        dash_case(f"{name}-{SOURCE_KEY}"),
        key=SOURCE_KEY,
        bucket=bucket.id,
        content_type="application/zip",
        source=pulumi.FileAsset(str(archive_path)),
        opts=pulumi.ResourceOptions.merge(opts, pulumi.ResourceOptions(parent=bucket)),
    )

    return bucket, source
