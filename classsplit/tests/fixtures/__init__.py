"""Test fixtures for classsplit tests.

This module provides sample C# sources covering the namespace and brace
styles the adapter has to reproduce, and a generator for classes large
enough to need splitting.
"""

from classsplit.splitting.types import DeclarationUnit

# Block namespace, Allman braces, doc comment, attribute and base list
BLOCK_NAMESPACE_SOURCE = '''using System;
using System.Collections.Generic;

namespace Demo.Services
{
    /// <summary>Does things.</summary>
    [Serializable]
    public sealed class Engine : IDisposable
    {
        private readonly List<int> _items = new();

        // Starts the engine.
        public void Start()
        {
            Console.WriteLine("start");
        }

        public int Count => _items.Count; // cached

        public void Dispose()
        {
        }
    }
}
'''

# File scoped namespace
FILE_SCOPED_SOURCE = '''using System;

namespace Demo.Models;

public class Order
{
    public int Id { get; set; }

    public decimal Total()
    {
        return 0m;
    }
}
'''

# Block namespace with K&R braces
KNR_SOURCE = '''namespace Demo {
    public static class Helpers {
        public static int One() {
            return 1;
        }

        public static int Two() => 2;
    }
}
'''

NESTED_NAMESPACE_SOURCE = '''namespace Outer
{
    namespace Inner
    {
        internal class Deep
        {
            private int _x;
        }
    }
}
'''

NAMESPACE_USINGS_SOURCE = '''namespace Demo
{
    using System.Text;

    public class Builder
    {
        public string Build() => new StringBuilder().ToString();
    }
}
'''

PARTIAL_SOURCE = '''public partial class Already
{
    public void A()
    {
    }

    public void B()
    {
    }
}
'''

GENERIC_SOURCE = '''public class Cache<TKey, TValue> where TKey : class
{
    private readonly int _size;

    public int Size => _size;
}
'''

REGION_SOURCE = '''public class Widget
{
    #region Fields
    private int _a;
    #endregion

    #region Methods
    public void Run()
    {
    }
    #endregion
}
'''

NULLABLE_SOURCE = '''#nullable enable
using System;

namespace Demo.Models;

public class Customer
{
    public string? Name { get; set; }

    public string Greet()
    {
        return $"Hello {Name}";
    }
}
'''

PRAGMA_SOURCE = '''public class Legacy
{
    public void First()
    {
    }

#pragma warning disable CS0168
    public void Second()
    {
        int unused;
    }

    public void Third()
    {
        int unused;
    }
#pragma warning restore CS0168

    public void Fourth()
    {
    }
}
'''

FILE_LOCAL_SOURCE = '''file class Hidden
{
    public void Run()
    {
    }
}
'''

NESTED_TYPE_SOURCE = '''public class Outer
{
    private int _value;

    private class Node
    {
        public int Next;
    }
}
'''

TWO_CLASSES_SOURCE = '''public class First
{
}

public class Second
{
}
'''

NO_CLASS_SOURCE = '''namespace Demo;

public enum Color
{
    Red,
    Green,
}
'''

SYNTAX_ERROR_SOURCE = '''public class Broken
{
    public void Run(
}
'''


def make_class(
    name: str = 'Engine',
    method_count: int = 20,
    body_lines: int = 5,
    namespace: str = 'Demo.Services',
) -> str:
    """Build a class with ``method_count`` methods of ``body_lines + 3`` lines."""
    methods = []
    for i in range(method_count):
        body = '\n'.join(f'            var x{j} = {j};' for j in range(body_lines))
        methods.append(
            f'        public void Method{i}()\n        {{\n{body}\n        }}'
        )
    members = '\n\n'.join(methods)
    return (
        f'using System;\n\nnamespace {namespace}\n{{\n'
        f'    public class {name}\n    {{\n{members}\n    }}\n}}\n'
    )


class FakeRenderer:
    """Deterministic renderer sized by a table of member line counts.

    A container renders to ``overhead`` lines plus the size of each unit,
    plus ``gap`` lines between consecutive units. Every call is recorded.
    """

    def __init__(self, sizes, overhead=10, original_overhead=None, gap=0):
        self.sizes = list(sizes)
        self.overheads = {
            'new': overhead,
            'original': overhead if original_overhead is None else original_overhead,
        }
        self.gap = gap
        self.calls = []

    def units(self):
        return [
            DeclarationUnit(original_index=i, content=f'member {i}', name=f'M{i}')
            for i in range(len(self.sizes))
        ]

    def lines_for(self, units, role) -> int:
        lines = self.overheads[role.value]
        lines += sum(self.sizes[unit.original_index] for unit in units)
        lines += self.gap * max(len(units) - 1, 0)
        return lines

    def render(self, units, role) -> str:
        self.calls.append(([unit.original_index for unit in units], role))
        return 'x\n' * self.lines_for(units, role)
