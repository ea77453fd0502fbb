# AWS indicator fields and scanners

import re

from botocore.utils import ArnParser

from .fields import FieldMeta
from .registry import RegistryBuilder
from .writer import ValueWriter


AWS_FIELD_BASE = 1000

FIELD_ACCOUNT_ID = AWS_FIELD_BASE
FIELD_INSTANCE_ID = AWS_FIELD_BASE + 1
FIELD_ARN = AWS_FIELD_BASE + 2
FIELD_TAG = AWS_FIELD_BASE + 3

AWS_FIELDS = {
    FIELD_ACCOUNT_ID: FieldMeta(
        nameJSON='p_any_aws_account_ids',
        name='AnyAWSAccountIds',
        description='Collection of AWS account ids associated with the row'
    ),
    FIELD_INSTANCE_ID: FieldMeta(
        nameJSON='p_any_aws_instance_ids',
        name='AnyAWSInstanceIds',
        description='Collection of AWS instance ids associated with the row'
    ),
    FIELD_ARN: FieldMeta(
        nameJSON='p_any_aws_arns',
        name='AnyAWSARNs',
        description='Collection of AWS ARNs associated with the row'
    ),
    FIELD_TAG: FieldMeta(
        nameJSON='p_any_aws_tags',
        name='AnyAWSTags',
        description='Collection of AWS tags associated with the row'
    ),
}

ACCOUNT_ID_SIZE = 12
INSTANCE_ID_PREFIX = 'i-'
INSTANCE_RESOURCE_PREFIX = 'instance/'
ARN_PREFIX = 'arn:'

_accountIdPattern = re.compile(r'[0-9]{12}')
_arnParser = ArnParser()


def scanAccountID(writer: ValueWriter, value: str) -> None:
    if len(value) == ACCOUNT_ID_SIZE and _accountIdPattern.fullmatch(value):
        writer.writeValues(FIELD_ACCOUNT_ID, value)


def scanInstanceID(writer: ValueWriter, value: str) -> None:
    if value.startswith(INSTANCE_ID_PREFIX):
        writer.writeValues(FIELD_INSTANCE_ID, value)


def scanARN(writer: ValueWriter, value: str) -> None:
    if not value.startswith(ARN_PREFIX):
        return
    try:
        parsed = _arnParser.parse_arn(value)
    except ValueError:  # InvalidArnException
        return

    writer.writeValues(FIELD_ARN, value)
    scanAccountID(writer, parsed['account'])
    _scanResourceInstanceID(writer, parsed['resource'])


def _scanResourceInstanceID(writer: ValueWriter, resource: str) -> None:
    # EC2 instance ARNs look like arn:aws:ec2:<region>:<account>:instance/<instance-id>
    if not resource.startswith(INSTANCE_RESOURCE_PREFIX):
        return
    slashIndex = resource.rfind('/')
    if slashIndex < len(resource) - 1:  # nothing to scan when it ends in "/"
        scanInstanceID(writer, resource[slashIndex + 1:])


def registerAWSIndicators(builder: RegistryBuilder) -> RegistryBuilder:
    for fieldId, meta in AWS_FIELDS.items():
        builder.registerField(fieldId, meta)

    builder.registerScanner('aws_arn', scanARN, FIELD_ARN, FIELD_ACCOUNT_ID, FIELD_INSTANCE_ID)
    builder.registerScanner('aws_instance_id', scanInstanceID, FIELD_INSTANCE_ID)
    builder.registerScanner('aws_tag', FIELD_TAG, FIELD_TAG)
    builder.registerScanner('aws_account_id', scanAccountID, FIELD_ACCOUNT_ID)
    return builder
