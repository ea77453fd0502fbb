"""
Unit Tests for the indicator registry and AWS scanners
"""

import threading
import unittest

from indicators import (
    EnrichedRow,
    FieldMeta,
    IndicatorCollection,
    RegistryBuilder,
    RegistryError,
    RowValueWriter,
    UnknownFieldError,
    UnknownScannerError,
    ValueWriter,
    buildDefaultRegistry,
)
from indicators.aws import (
    FIELD_ACCOUNT_ID,
    FIELD_ARN,
    FIELD_INSTANCE_ID,
    FIELD_TAG,
    scanARN,
    scanAccountID,
    scanInstanceID,
)


class RecordingWriter(ValueWriter):

    def __init__(self):
        self.values = []

    def writeValues(self, fieldId, *values):
        for value in values:
            self.values.append((fieldId, value))


def meta(name):
    return FieldMeta(nameJSON=f"p_any_{name}", name=name, description=f"{name} values")


class TestAccountIDScanner(unittest.TestCase):

    def testValidAccountID(self):
        writer = RecordingWriter()
        scanAccountID(writer, '123456789012')
        self.assertEqual(writer.values, [(FIELD_ACCOUNT_ID, '123456789012')])

    def testInvalidAccountIDs(self):
        for value in ['', '12345678901', '1234567890123', '12345678901a', '123456789012\n',
                      '١٢٣٤٥٦٧٨٩٠١٢']:
            writer = RecordingWriter()
            scanAccountID(writer, value)
            self.assertEqual(writer.values, [], value)


class TestInstanceIDScanner(unittest.TestCase):

    def testInstanceIDPrefix(self):
        writer = RecordingWriter()
        scanInstanceID(writer, 'i-0abcd1234')
        self.assertEqual(writer.values, [(FIELD_INSTANCE_ID, 'i-0abcd1234')])

    def testRejectsOtherPrefixes(self):
        for value in ['', 'i', 'I-0abc', 'x-0abc', 'ami-0abc']:
            writer = RecordingWriter()
            scanInstanceID(writer, value)
            self.assertEqual(writer.values, [], value)


class TestARNScanner(unittest.TestCase):

    def testInstanceARN(self):
        arn = 'arn:aws:ec2:us-east-1:123456789012:instance/i-0abcd1234'
        writer = RecordingWriter()
        scanARN(writer, arn)
        self.assertEqual(writer.values, [
            (FIELD_ARN, arn),
            (FIELD_ACCOUNT_ID, '123456789012'),
            (FIELD_INSTANCE_ID, 'i-0abcd1234'),
        ])

    def testNotAnARN(self):
        writer = RecordingWriter()
        scanARN(writer, 'not-an-arn')
        self.assertEqual(writer.values, [])

    def testTooFewSections(self):
        writer = RecordingWriter()
        scanARN(writer, 'arn:aws:ec2:us-east-1')
        self.assertEqual(writer.values, [])

    def testTrailingSlashHasNoInstanceID(self):
        arn = 'arn:aws:ec2:us-east-1:123456789012:instance/'
        writer = RecordingWriter()
        scanARN(writer, arn)
        self.assertEqual(writer.values, [
            (FIELD_ARN, arn),
            (FIELD_ACCOUNT_ID, '123456789012'),
        ])

    def testARNWithoutAccount(self):
        arn = 'arn:aws:s3:::my-bucket'
        writer = RecordingWriter()
        scanARN(writer, arn)
        self.assertEqual(writer.values, [(FIELD_ARN, arn)])

    def testNonInstanceResource(self):
        arn = 'arn:aws:iam::123456789012:user/alice'
        writer = RecordingWriter()
        scanARN(writer, arn)
        self.assertEqual(writer.values, [
            (FIELD_ARN, arn),
            (FIELD_ACCOUNT_ID, '123456789012'),
        ])


class TestRegistryBuilder(unittest.TestCase):

    def testDuplicateFieldIsFatal(self):
        builder = RegistryBuilder()
        builder.registerField(1, meta('one'))
        builder.registerField(1, meta('other'))

        with self.assertRaises(RegistryError) as ctx:
            builder.build()
        self.assertEqual(len(ctx.exception.errors), 1)
        self.assertIn('Duplicate field id 1', ctx.exception.errors[0])

    def testErrorsAggregate(self):
        builder = RegistryBuilder()
        builder.registerField(1, FieldMeta(nameJSON='p_any_x', name='', description=''))
        builder.registerField(0, meta('zero'))
        builder.registerScanner('scan_missing', lambda w, v: None, 99)
        builder.registerScanner('', lambda w, v: None, 1)

        with self.assertRaises(RegistryError) as ctx:
            builder.build()
        self.assertEqual(len(ctx.exception.errors), 4)

    def testScannerNeedsRegisteredFields(self):
        builder = RegistryBuilder()
        builder.registerScanner('early', lambda w, v: None, 1)
        builder.registerField(1, meta('one'))

        with self.assertRaises(RegistryError):
            builder.build()

    def testDuplicateScanner(self):
        builder = RegistryBuilder()
        builder.registerField(1, meta('one'))
        builder.registerScanner('one', 1)
        builder.registerScanner('one', 1)

        with self.assertRaises(RegistryError):
            builder.build()

    def testScannerWithoutOutputs(self):
        builder = RegistryBuilder()
        builder.registerScanner('nothing', lambda w, v: None)

        with self.assertRaises(RegistryError):
            builder.build()

    def testRegistrationAfterBuild(self):
        builder = RegistryBuilder()
        builder.registerField(1, meta('one'))
        builder.build()

        with self.assertRaises(RegistryError):
            builder.registerField(2, meta('two'))

    def testPassthroughScanner(self):
        builder = RegistryBuilder()
        builder.registerField(7, meta('tag'))
        builder.registerScanner('tag', 7)
        registry = builder.build()

        writer = RecordingWriter()
        registry.scan('tag', writer, 'env:prod')
        self.assertEqual(writer.values, [(7, 'env:prod')])
        self.assertEqual(registry.scanner('tag').fieldIds, frozenset([7]))


class TestIndicatorRegistry(unittest.TestCase):

    def setUp(self):
        self.registry = buildDefaultRegistry()

    def testFieldLookup(self):
        self.assertEqual(self.registry.field(FIELD_ARN).nameJSON, 'p_any_aws_arns')

        with self.assertRaises(UnknownFieldError):
            self.registry.field(424242)

    def testRegistryIsReadOnly(self):
        with self.assertRaises(TypeError):
            self.registry.fields[5000] = meta('late')

    def testUnknownScanner(self):
        with self.assertRaises(UnknownScannerError):
            self.registry.scan('aws_arnn', RecordingWriter(), 'arn:aws:s3:::bucket')

    def testScanValuesSkipsNone(self):
        writer = RecordingWriter()
        self.registry.scanValues('aws_instance_id', writer, [None, 'i-1', None, 'i-2'])
        self.assertEqual(writer.values, [(FIELD_INSTANCE_ID, 'i-1'), (FIELD_INSTANCE_ID, 'i-2')])

    def testTagPassthrough(self):
        writer = RecordingWriter()
        self.registry.scan('aws_tag', writer, 'anything goes')
        self.assertEqual(writer.values, [(FIELD_TAG, 'anything goes')])

    def testOutputFields(self):
        names = [m.nameJSON for m in self.registry.outputFields('aws_arn')]
        self.assertEqual(names, ['p_any_aws_account_ids', 'p_any_aws_instance_ids', 'p_any_aws_arns'])

    def testConcurrentScans(self):
        rows = [EnrichedRow() for _ in range(16)]

        def work(row, n):
            writer = RowValueWriter(self.registry, row)
            for i in range(200):
                self.registry.scan('aws_arn', writer, f'arn:aws:ec2:us-east-1:{n:012d}:instance/i-{i}')

        threads = [threading.Thread(target=work, args=(row, n)) for n, row in enumerate(rows)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        for n, row in enumerate(rows):
            self.assertEqual(row.indicator('p_any_aws_account_ids'), [f'{n:012d}'])
            self.assertEqual(len(row.indicator('p_any_aws_instance_ids')), 200)


class TestEnrichedRow(unittest.TestCase):

    def testCollectionKeepsFirstSeenOrder(self):
        collection = IndicatorCollection('b', 'a', 'b')
        collection.add('c', 'a')
        self.assertEqual(collection.toList(), ['b', 'a', 'c'])
        self.assertIn('c', collection)
        self.assertEqual(len(collection), 3)

    def testRowValueWriterAccumulates(self):
        registry = buildDefaultRegistry()
        row = EnrichedRow({'eventName': 'RunInstances'})
        writer = RowValueWriter(registry, row)

        writer.writeValues(FIELD_TAG, 'env:prod')
        writer.writeValues(FIELD_TAG, 'team:sec', 'env:prod')

        self.assertEqual(row.toDict(), {
            'eventName': 'RunInstances',
            'p_any_aws_tags': ['env:prod', 'team:sec'],
        })

    def testEmptyCollectionsAreOmitted(self):
        row = EnrichedRow({'a': 1})
        row.appendIndicator('p_any_aws_arns')
        self.assertNotIn('p_any_aws_arns', row.indicators)
        self.assertEqual(row.toDict(), {'a': 1})

    def testRowCopiesRecord(self):
        record = {'a': 1}
        row = EnrichedRow(record)
        row.record['b'] = 2
        self.assertEqual(record, {'a': 1})


if __name__ == '__main__':
    unittest.main()
