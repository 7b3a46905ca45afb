"""Static website: build locally, serve from an S3 website bucket behind CloudFront."""

import json
import mimetypes
from dataclasses import dataclass

import pulumi
from pulumi_aws import cloudfront, s3

from exo_components.bundle import iter_files, run_build_commands
from exo_components.config import StaticWebsiteArgs
from exo_components.errors import NotFoundError, PackagingError
from exo_components.routes import dash_case

TEN_MINUTES = 60 * 10


@dataclass(frozen=True)
class StaticWebsite:
    bucket: s3.Bucket
    objects: list[s3.BucketObject]
    cdn: cloudfront.Distribution


def content_type(path) -> str:
    return mimetypes.guess_type(str(path))[0] or "application/octet-stream"


def public_read_policy(bucket_id: str) -> str:
    return json.dumps({
        "Version": "2012-10-17",
        "Statement": [{
            "Effect": "Allow",
            "Principal": "*",
            "Action": ["s3:GetObject"],
            "Resource": [f"arn:aws:s3:::{bucket_id}/*"],
        }],
    })


def build_site(args: StaticWebsiteArgs):
    """Run the site's build and return its distribution directory."""
    if not args.source_dir.is_dir():
        raise NotFoundError(args.source_dir, f"Site source directory not found: {args.source_dir}")
    run_build_commands(
        args.source_dir,
        [args.pre_build_command, args.build_command],
        timeout=args.build_timeout,
    )
    dist = args.distribution_path
    if not dist.is_dir():
        raise NotFoundError(dist, f"Site distribution directory not found: {dist}")
    return dist


def create_static_website(
    name: str,
    args: StaticWebsiteArgs,
    opts: pulumi.ResourceOptions | None = None,
) -> StaticWebsite:
    # 1) Build site content
    dist = build_site(args)
    try:
        files = list(iter_files(dist))
    except OSError as exc:
        raise PackagingError(f"Cannot list site files under {dist}: {exc}") from exc

    # 2) Website bucket
    bucket = s3.Bucket(
        f"{dash_case(name)}-bucket",
        website=s3.BucketWebsiteArgs(
            index_document=args.index_document,
            error_document=args.error_document,
        ),
        tags=dict(args.tags) or None,
        opts=opts,
    )

    # 3) Ensure public policies aren't blocked, then allow public reads
    access_block = s3.BucketPublicAccessBlock(
        f"{dash_case(name)}-public-access",
        bucket=bucket.id,
        block_public_acls=False,
        block_public_policy=False,
        ignore_public_acls=False,
        restrict_public_buckets=False,
        opts=opts,
    )
    s3.BucketPolicy(
        f"{dash_case(name)}-bucket-policy",
        bucket=bucket.id,
        policy=bucket.id.apply(public_read_policy),
        opts=pulumi.ResourceOptions.merge(
            opts, pulumi.ResourceOptions(depends_on=[access_block])
        ),
    )

    # 4) Push each file of the distribution
    object_opts = pulumi.ResourceOptions.merge(opts, pulumi.ResourceOptions(parent=bucket))
    objects = [
        s3.BucketObject(
            f"{dash_case(name)}-{rel_path}",  # Pulumi resource name (must be unique)
            bucket=bucket.id,
            key=rel_path,
            source=pulumi.FileAsset(str(full_path)),
            content_type=content_type(full_path),
            opts=object_opts,
        )
        for full_path, rel_path in files
    ]
    pulumi.log.info(f"Declared {len(objects)} site objects from {dist}")

    # 5) CDN in front of the website endpoint
    origin_id = bucket.arn
    cdn = cloudfront.Distribution(
        f"{dash_case(name)}-cdn",
        enabled=True,
        default_root_object=args.index_document,
        origins=[cloudfront.DistributionOriginArgs(
            origin_id=origin_id,
            domain_name=bucket.website_endpoint,
            custom_origin_config=cloudfront.DistributionOriginCustomOriginConfigArgs(
                origin_protocol_policy="http-only",
                http_port=80,
                https_port=443,
                origin_ssl_protocols=["TLSv1.2"],
            ),
        )],
        default_cache_behavior=cloudfront.DistributionDefaultCacheBehaviorArgs(
            target_origin_id=origin_id,
            viewer_protocol_policy="redirect-to-https",
            allowed_methods=["GET", "HEAD", "OPTIONS"],
            cached_methods=["GET", "HEAD", "OPTIONS"],
            forwarded_values=cloudfront.DistributionDefaultCacheBehaviorForwardedValuesArgs(
                query_string=False,
                cookies=cloudfront.DistributionDefaultCacheBehaviorForwardedValuesCookiesArgs(
                    forward="none",
                ),
            ),
            min_ttl=0,
            default_ttl=TEN_MINUTES,
            max_ttl=TEN_MINUTES,
        ),
        # Only North America and Europe edge locations
        price_class="PriceClass_100",
        custom_error_responses=[cloudfront.DistributionCustomErrorResponseArgs(
            error_code=404,
            response_code=404,
            response_page_path=f"/{args.error_document}",
        )],
        restrictions=cloudfront.DistributionRestrictionsArgs(
            geo_restriction=cloudfront.DistributionRestrictionsGeoRestrictionArgs(
                restriction_type="none",
            ),
        ),
        viewer_certificate=cloudfront.DistributionViewerCertificateArgs(
            cloudfront_default_certificate=True,
        ),
        opts=opts,
    )

    return StaticWebsite(bucket=bucket, objects=objects, cdn=cdn)
