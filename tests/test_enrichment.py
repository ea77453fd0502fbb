"""
Unit Tests for schema-driven enrichment
"""

import copy
import unittest

from indicators import buildDefaultRegistry
from timecodec import CodecRegistry
from enrichment import EVENT_TIME_FIELD, Enricher, EnrichmentError, FieldMapper, LogSchema, SchemaError


CLOUDTRAIL_SCHEMA = {
    'indicators': [
        {'path': 'userIdentity.accountId', 'scanner': 'aws_account_id'},
        {'path': 'userIdentity.arn', 'scanner': 'aws_arn'},
        {'path': 'recipientAccountId', 'scanner': 'aws_account_id'},
        {'path': 'resources.ARN', 'scanner': 'aws_arn'},
        {'path': 'resources.accountId', 'scanner': 'aws_account_id'},
        {'path': 'requestParameters.instanceId', 'scanner': 'aws_instance_id'},
        {'path': 'tags', 'scanner': 'aws_tag'},
    ],
    'timestamps': [
        {'path': 'eventTime', 'codec': 'rfc3339', 'fallback': ['unix', 'unix_ms'], 'event_time': True},
    ],
}


def cloudTrailRecord(**overrides):
    record = {
        'eventName': 'RunInstances',
        'eventTime': '2020-01-01T00:00:00Z',
        'userIdentity': {
            'accountId': '123456789012',
            'arn': 'arn:aws:iam::123456789012:user/alice',
        },
        'recipientAccountId': '123456789012',
        'resources': [
            {'ARN': 'arn:aws:ec2:us-east-1:210987654321:instance/i-0abcd1234', 'accountId': '210987654321'},
            {'ARN': 'not-an-arn'},
        ],
        'requestParameters': {'instanceId': 'i-0ffff'},
    }
    record.update(overrides)
    return record


class TestLogSchema(unittest.TestCase):

    def testFromConfig(self):
        schema = LogSchema.fromConfig('AWS.CloudTrail', CLOUDTRAIL_SCHEMA)
        self.assertEqual(len(schema.indicators), 7)
        self.assertEqual(schema.eventTimePath.path, 'eventTime')
        self.assertEqual(schema.eventTimePath.fallback, ['unix', 'unix_ms'])
        self.assertEqual(schema.scannerNames(), ['aws_account_id', 'aws_arn', 'aws_instance_id', 'aws_tag'])

    def testToDict(self):
        data = LogSchema.fromConfig('AWS.CloudTrail', CLOUDTRAIL_SCHEMA).to_dict()
        self.assertEqual(data['name'], 'AWS.CloudTrail')
        self.assertTrue(data['timestamps'][0]['event_time'])

    def testMalformedDeclarations(self):
        for declaration in (
            [],
            {'indicators': [{'path': 'a'}]},
            {'timestamps': [{'codec': 'unix'}]},
            {'timestamps': [{'path': 'a', 'event_time': True}, {'path': 'b', 'event_time': True}]},
            {'timestamps': [{'path': 'a'}, {'path': 'a'}]},
        ):
            with self.assertRaises(SchemaError):
                LogSchema.fromConfig('Bad', declaration)


class TestFieldMapper(unittest.TestCase):

    def setUp(self):
        self.mapper = FieldMapper()

    def testExtractValuesWalksLists(self):
        data = {'a': [{'b': 1}, {'b': [2, 3]}, {'c': 4}, 'x']}
        self.assertEqual(self.mapper.extractValues(data, 'a.b'), [1, 2, 3])

    def testSetFieldCopiesNestedDicts(self):
        source = {'detail': {'time': 1}}
        data = dict(source)
        self.mapper.setField(data, 'detail.time', 2)
        self.assertEqual(data['detail']['time'], 2)
        self.assertEqual(source['detail']['time'], 1)

    def testRemoveField(self):
        data = {'detail': {'time': 1, 'other': 2}}
        self.mapper.removeField(data, 'detail.time')
        self.assertEqual(data, {'detail': {'other': 2}})
        self.assertFalse(self.mapper.hasField(data, 'detail.time'))


class TestEnricher(unittest.TestCase):

    def setUp(self):
        self.registry = buildDefaultRegistry()
        self.codecs = CodecRegistry()
        self.enricher = Enricher(LogSchema.fromConfig('AWS.CloudTrail', CLOUDTRAIL_SCHEMA), self.registry, self.codecs)

    def testCloudTrailIndicators(self):
        row = self.enricher.enrich(cloudTrailRecord()).toDict()

        self.assertEqual(row['p_any_aws_account_ids'], ['123456789012', '210987654321'])
        self.assertEqual(row['p_any_aws_arns'], [
            'arn:aws:iam::123456789012:user/alice',
            'arn:aws:ec2:us-east-1:210987654321:instance/i-0abcd1234',
        ])
        self.assertEqual(row['p_any_aws_instance_ids'], ['i-0abcd1234', 'i-0ffff'])
        self.assertNotIn('p_any_aws_tags', row)
        self.assertEqual(row['eventName'], 'RunInstances')

    def testEventTime(self):
        row = self.enricher.enrich(cloudTrailRecord()).toDict()
        self.assertEqual(row['eventTime'], '2020-01-01T00:00:00Z')
        self.assertEqual(row[EVENT_TIME_FIELD], '2020-01-01T00:00:00Z')

    def testEventTimeFallbacks(self):
        for raw in ('1577836800', 1577836800, 1577836800000):
            row = self.enricher.enrich(cloudTrailRecord(eventTime=raw))
            self.assertEqual(row.errors, {}, raw)
            self.assertEqual(row.record['eventTime'], '2020-01-01T00:00:00Z', raw)

    def testNumericAccountIdAndTags(self):
        record = cloudTrailRecord(recipientAccountId=999999999999, tags=['env:prod', None, 'env:prod', 'team:sec'])
        row = self.enricher.enrich(record).toDict()
        self.assertIn('999999999999', row['p_any_aws_account_ids'])
        self.assertEqual(row['p_any_aws_tags'], ['env:prod', 'team:sec'])

    def testInputIsNotMutated(self):
        record = cloudTrailRecord(eventTime='1577836800')
        original = copy.deepcopy(record)
        self.enricher.enrich(record)
        self.assertEqual(record, original)

    def testBadTimestampIsRecorded(self):
        row = self.enricher.enrich(cloudTrailRecord(eventTime='yesterday'))
        self.assertIn('eventTime', row.errors)
        self.assertEqual(row.record['eventTime'], 'yesterday')
        self.assertNotIn(EVENT_TIME_FIELD, row.record)
        self.assertEqual(row.indicator('p_any_aws_account_ids'), ['123456789012', '210987654321'])

    def testFailOnTimeError(self):
        enricher = Enricher(self.enricher.schema, self.registry, self.codecs, failOnTimeError=True)
        with self.assertRaises(EnrichmentError):
            enricher.enrich(cloudTrailRecord(eventTime='yesterday'))

    def testOutputColumns(self):
        self.assertEqual(self.enricher.outputColumns(), [
            'p_any_aws_account_ids',
            'p_any_aws_instance_ids',
            'p_any_aws_arns',
            'p_any_aws_tags',
        ])

    def testUnknownScannerFailsAtConstruction(self):
        schema = LogSchema.fromConfig('Typo', {'indicators': [{'path': 'a', 'scanner': 'aws_acount_id'}]})
        with self.assertRaises(SchemaError):
            Enricher(schema, self.registry, self.codecs)

    def testUnknownCodecFailsAtConstruction(self):
        for timestamp in ({'path': 't', 'codec': 'unix_ns'},
                          {'path': 't', 'fallback': ['nope']},
                          {'path': 't', 'timezone': 'Not/AZone'}):
            schema = LogSchema.fromConfig('Typo', {'timestamps': [timestamp]})
            with self.assertRaises(SchemaError):
                Enricher(schema, self.registry, self.codecs)


class TestTimestampFields(unittest.TestCase):

    def setUp(self):
        self.registry = buildDefaultRegistry()
        schema = LogSchema.fromConfig('AWS.VPCFlow', {
            'indicators': [{'path': 'account', 'scanner': 'aws_account_id'}],
            'timestamps': [
                {'path': 'start', 'codec': 'unix', 'event_time': True},
                {'path': 'end', 'codec': 'unix', 'optional': True},
                {'path': 'detail.seen', 'codec': 'layout=%Y-%m-%d %H:%M:%S', 'timezone': 'UTC', 'optional': True},
            ],
        })
        self.enricher = Enricher(schema, self.registry, CodecRegistry())

    def testEpochSecondsRoundTrip(self):
        row = self.enricher.enrich({'account': '123456789012', 'start': '1577836800.5', 'end': 1577836860})
        self.assertEqual(row.record['start'], 1577836800.5)
        self.assertEqual(row.record['end'], 1577836860.0)
        self.assertEqual(row.record[EVENT_TIME_FIELD], '2020-01-01T00:00:00.5Z')

    def testOptionalNullIsOmitted(self):
        row = self.enricher.enrich({'start': 1577836800, 'end': None})
        self.assertNotIn('end', row.record)
        self.assertNotIn('detail', row.record)

    def testMissingDirectFieldIsNull(self):
        row = self.enricher.enrich({'account': '123456789012'})
        self.assertIsNone(row.record['start'])
        self.assertNotIn(EVENT_TIME_FIELD, row.record)
        self.assertEqual(row.errors, {})

    def testNestedLayoutField(self):
        record = {'start': 1577836800, 'detail': {'seen': '2020-01-01 00:00:00', 'kind': 'flow'}}
        row = self.enricher.enrich(record)
        self.assertEqual(row.record['detail'], {'seen': '2020-01-01 00:00:00', 'kind': 'flow'})
        self.assertEqual(row.errors, {})


if __name__ == '__main__':
    unittest.main()
